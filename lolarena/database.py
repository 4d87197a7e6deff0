# database.py – SQLAlchemy setup (engine, sessions, declarative Base)

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Declarative base shared by every model
Base = declarative_base()


def make_engine(db_url: str) -> Engine:
    """Create the engine; for SQLite, create the parent folder of the .db file first."""
    if db_url.startswith("sqlite:///") and ":memory:" not in db_url:
        db_file = db_url.replace("sqlite:///", "")
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(db_url, future=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
    )


def init_db(engine: Engine) -> None:
    """Create the tables if they do not exist yet."""
    # Local import avoids the import cycle with the models
    from lolarena.db import riot_cache  # noqa: F401
    Base.metadata.create_all(bind=engine)
