"""Database session management context manager."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Generator

from sqlalchemy.orm import Session, sessionmaker

SessionScope = Callable[[], ContextManager[Session]]


def make_session_scope(session_local: sessionmaker) -> SessionScope:
    """
    Wrap a session factory in a transactional context manager.

    Each ``with scope() as db:`` block commits on success, rolls back on any
    error and always closes the session, returning its connection to the pool.
    """

    @contextmanager
    def scope() -> Generator[Session, None, None]:
        db = session_local()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return scope
