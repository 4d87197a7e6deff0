# riot/errors.py – Exceptions raised around the Riot API

from typing import Optional


class RiotAPIError(Exception):
    """Base exception for Riot API errors."""
    pass


class NotFoundError(RiotAPIError):
    """Upstream answered 404: the resource does not exist. Never retried."""
    pass


class TransientUpstreamError(RiotAPIError):
    """Network failure, timeout or 5xx. Retried with exponential backoff."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UpstreamUnavailableError(RiotAPIError):
    """Raised once transient failures have exhausted every attempt."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.last_error = last_error


class RateLimitedError(RiotAPIError):
    """Upstream kept answering 429 after the explicit-delay retry."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamRequestError(RiotAPIError):
    """Non-retryable client error (400, 401, 403, ...)."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class BackpressureError(RiotAPIError):
    """The request queue is full; the caller should retry later."""
    pass


class CacheError(Exception):
    pass


class CacheUnavailableError(CacheError):
    """Durable cache tier failed. Logged and treated as a miss, never surfaced."""
    pass
