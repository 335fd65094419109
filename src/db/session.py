from __future__ import annotations

import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


def _get_database_url() -> Optional[str]:
    """
    Return the configured database URL, or None to use in-memory storage.

    Example: sqlite:///./pitwall.db or postgresql+psycopg://user:pw@localhost/pitwall
    """
    return os.getenv("DATABASE_URL") or None


DATABASE_URL = _get_database_url()


def make_engine(url: str) -> Engine:
    """Create a sync engine; in-memory sqlite shares one connection across threads."""
    if url.startswith("sqlite") and ":memory:" in url:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, future=True)
    return create_engine(url, future=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)
