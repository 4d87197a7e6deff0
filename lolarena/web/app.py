# lolarena/web/app.py
# HTTP surface of the backend (FastAPI)
# Run:
#   python -m uvicorn lolarena.web.app:app --host 0.0.0.0 --port 3000

import math
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from lolarena.backend import Backend
from lolarena.config import get_settings
from lolarena.logging_config import get_logger, setup_logging
from lolarena.riot.errors import (
    BackpressureError,
    NotFoundError,
    RateLimitedError,
    RiotAPIError,
    UpstreamRequestError,
)

log = get_logger(__name__)

APP_TITLE = "LoL Arena Backend"
VERSION = "2.0.0"
DEFAULT_API_RATE_LIMIT = "20 per 2 minutes"


def error_response(exc: RiotAPIError) -> JSONResponse:
    """Map a classified Riot failure onto an HTTP answer for the front-end."""
    if isinstance(exc, NotFoundError):
        return JSONResponse({"error": "Player not found", "details": "Riot ID does not exist"}, status_code=404)

    if isinstance(exc, RateLimitedError):
        retry_after = math.ceil(exc.retry_after) if exc.retry_after is not None else None
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        return JSONResponse(
            {"error": "Rate limit reached", "details": "Too many requests, wait a moment", "retryAfter": retry_after},
            status_code=429,
            headers=headers,
        )

    if isinstance(exc, BackpressureError):
        return JSONResponse({"error": "Server busy", "details": "Request queue is full, retry later"}, status_code=503)

    if isinstance(exc, UpstreamRequestError):
        if exc.status == 401:
            # Our key is wrong: not the client's fault
            return JSONResponse({"error": "API key problem", "details": "Server configuration is broken"}, status_code=500)
        if exc.status == 403:
            return JSONResponse({"error": "Access denied", "details": "Riot API refused the request"}, status_code=403)
        if exc.status == 400:
            return JSONResponse({"error": "Invalid request", "details": str(exc)}, status_code=400)
        return JSONResponse({"error": "Riot API error", "details": str(exc)}, status_code=502)

    return JSONResponse({"error": "Riot API unreachable", "details": str(exc)}, status_code=502)


def create_app(backend: Optional[Backend] = None, api_rate_limit: Optional[str] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        backend: Pre-built backend (tests). Built from the settings at startup otherwise.
        api_rate_limit: Per-IP limit on /api routes. API_RATE_LIMIT from the settings otherwise.
    """
    # One in-memory limiter per app, keyed on the client IP and shared by every /api route
    limiter = Limiter(key_func=get_remote_address)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        current = backend
        if current is None:
            settings = get_settings()
            setup_logging(settings.LOG_LEVEL)
            current = Backend.from_settings(settings)
            if api_rate_limit is None:
                app.state.api_rate_limit = settings.API_RATE_LIMIT
        app.state.backend = current
        app.state.started_at = time.time()
        current.start()
        log.info("🚀 LoL Arena backend started")
        try:
            yield
        finally:
            await current.close()
            log.info("LoL Arena backend stopped")

    app = FastAPI(title=APP_TITLE, version=VERSION, lifespan=lifespan)
    app.state.limiter = limiter
    app.state.api_rate_limit = api_rate_limit or DEFAULT_API_RATE_LIMIT
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])

    @app.exception_handler(RiotAPIError)
    async def riot_error_handler(request: Request, exc: RiotAPIError) -> JSONResponse:
        log.warning(f"{request.url.path}: {type(exc).__name__}: {exc}")
        return error_response(exc)

    @app.exception_handler(RateLimitExceeded)
    async def client_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        log.info(f"Client {get_remote_address(request)} over the /api limit ({exc.detail})")
        return JSONResponse(
            {"error": "Too many requests", "details": f"Limit is {exc.detail} per client, wait a moment"},
            status_code=429,
        )

    def api_limit() -> str:
        return app.state.api_rate_limit

    @app.get("/api/player/{game_name}/{tag_line}/{region}")
    @limiter.shared_limit(api_limit, scope="api")
    async def player(game_name: str, tag_line: str, region: str, request: Request) -> Dict[str, Any]:
        """Account + summoner profile + champion masteries for a Riot ID."""
        record = await request.app.state.backend.lookup.lookup(game_name, tag_line, region)
        return {**record.to_dict(), "cached": record.served_from_cache}

    @app.get("/api/account/{game_name}/{tag_line}/{region}")
    @limiter.shared_limit(api_limit, scope="api")
    async def account(game_name: str, tag_line: str, region: str, request: Request) -> Dict[str, Any]:
        """Account by Riot ID only."""
        return await request.app.state.backend.lookup.account(game_name, tag_line, region)

    @app.get("/health")
    async def health_check(request: Request) -> JSONResponse:
        """
        Basic health check endpoint.

        Returns:
            JSON with status, uptime and queue / limiter / cache state
        """
        uptime = int(time.time() - request.app.state.started_at)
        return JSONResponse({
            "status": "OK",
            "uptime_seconds": uptime,
            "service": "lolarena-backend",
            "version": VERSION,
            **request.app.state.backend.stats(),
        })

    @app.get("/readiness")
    async def readiness_check(request: Request) -> Response:
        """200 once the request queue's drain loop is running, 503 otherwise."""
        if request.app.state.backend.queue.running:
            return Response(status_code=200, content="Ready")
        return Response(status_code=503, content="Not ready: request queue stopped")

    @app.get("/liveness")
    async def liveness_check() -> Response:
        return Response(status_code=200, content="Alive")

    @app.get("/metrics")
    async def metrics(request: Request) -> Dict[str, Any]:
        return {
            "uptime_seconds": int(time.time() - request.app.state.started_at),
            "start_time": request.app.state.started_at,
            **request.app.state.backend.stats(),
        }

    @app.get("/")
    async def index() -> Dict[str, Any]:
        return {
            "name": APP_TITLE,
            "version": VERSION,
            "endpoints": {
                "GET /api/player/:gameName/:tagLine/:region": "Full player data (recommended)",
                "GET /api/account/:gameName/:tagLine/:region": "Account by Riot ID",
                "GET /health": "Server status",
            },
            "examples": {
                "player": "/api/player/Hide on bush/KR1/kr",
                "account": "/api/account/Faker/KR1/kr",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3000)
