# riot_cache.py – durable tier of the Riot response cache (SQLAlchemy)

from sqlalchemy import Column, Float, JSON, String

from lolarena.database import Base


class RiotCacheRow(Base):
    """One cached upstream payload. Timestamps are epoch seconds."""
    __tablename__ = "riot_cache"
    key        = Column(String, primary_key=True)   # player:euw1:ana:euw …
    payload    = Column(JSON)                       # assembled record, raw JSON
    created_at = Column(Float, nullable=False)
    expires_at = Column(Float, nullable=False, index=True)
