"""
Database base configuration and session management.

Provides the SQLAlchemy declarative base plus engine and session-factory
builders for the record store. Nothing here is cached at module level; callers
build an engine from an explicit ``PostgresConfig`` and keep it.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from accesspoint_sync.config import PostgresConfig

# SQLAlchemy declarative base for models
Base = declarative_base()


def build_engine(postgres_cfg: PostgresConfig) -> Engine:
    """
    Create a pooled engine for the record store.

    Raises:
        RuntimeError: If no connection URL is configured
    """
    if not postgres_cfg.url:
        raise RuntimeError(
            "DATABASE_URL is not set. "
            "Please define it in your environment or in a .env file."
        )

    return create_engine(
        postgres_cfg.url,
        pool_size=postgres_cfg.pool_size,
        max_overflow=postgres_cfg.max_overflow,
        pool_pre_ping=True,  # Validates connections before use
        echo=postgres_cfg.echo,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """
    Create the access point table and its indexes if they do not exist.
    """
    # Import models here to ensure they're registered with Base
    from accesspoint_sync.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
