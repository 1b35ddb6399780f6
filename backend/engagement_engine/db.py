"""
db.py
=====
Database wiring for the scoring engine.

- Engine built from `DATABASE_URL`; without it we run on a local SQLite file
  (sqlite:///./app.db), which is what tests and the demo seed use.
  Production points at the tenant store, e.g. postgresql+psycopg://app:app@db:5432/app
- `Base` for the ORM models, `SessionLocal` for sessions.
- `get_db()` for FastAPI (one session per request); the batch job opens its
  own session through `SessionLocal`.
- `init_db()` creates missing tables (app start-up, CLI --create-tables, tests).

Env Vars
--------
- DATABASE_URL  : SQLAlchemy URL
- ECHO_SQL      : "true" to echo SQL, default off
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

DEFAULT_DATABASE_URL = "sqlite:///./app.db"


def _resolve_database_url() -> str:
    url = (os.getenv("DATABASE_URL") or "").strip()
    return url or DEFAULT_DATABASE_URL


def _make_engine(url: str) -> Engine:
    """
    pool_pre_ping guards against stale Postgres connections; SQLite needs
    check_same_thread=False because FastAPI serves requests from a threadpool.
    """
    connect_args = {"check_same_thread": False} if url.startswith("sqlite:") else {}
    return create_engine(
        url,
        echo=os.getenv("ECHO_SQL", "false").lower() == "true",
        pool_pre_ping=True,
        connect_args=connect_args,
    )


SQLALCHEMY_DATABASE_URL: str = _resolve_database_url()
engine: Engine = _make_engine(SQLALCHEMY_DATABASE_URL)

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: yield a session, always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(drop: bool = False) -> None:
    """Create all tables registered on `Base`; `drop=True` recreates them from scratch."""
    from . import models  # noqa: F401  (registers tables on Base)

    if drop:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
