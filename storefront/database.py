"""Engine and session wiring for the exchange rate store.

Request handlers, the CLI and the admin service share the thread-local
``SessionLocal``. The rate synchronizer polls from a scheduler thread and
opens a short-lived session per read through ``new_session``.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, scoped_session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


SessionLocal = scoped_session(sessionmaker(autoflush=False))

_engine: Optional[Engine] = None


def _engine_options(database_uri: str) -> dict[str, Any]:
    if make_url(database_uri).get_backend_name() == "sqlite":
        return {}
    # Pooled connections can sit idle for a whole poll interval.
    return {"pool_pre_ping": True}


def init_app(app: Any) -> Engine:
    """Bind the session factory to ``SQLALCHEMY_DATABASE_URI``.

    The engine is process-wide; the first application to initialize it
    decides the URL. Every application still gets its own teardown hook.
    """

    global _engine

    if _engine is None:
        database_uri = app.config["SQLALCHEMY_DATABASE_URI"]
        _engine = create_engine(database_uri, **_engine_options(database_uri))
        SessionLocal.configure(bind=_engine)

    app.teardown_appcontext(_remove_session)
    app.extensions["sqlalchemy_engine"] = _engine
    return _engine


def _remove_session(_: Optional[BaseException] = None) -> None:
    SessionLocal.remove()


def get_engine() -> Engine:
    """Return the active SQLAlchemy engine; raise if not yet initialized."""

    if _engine is None:
        raise RuntimeError("Database engine has not been initialized. Call init_app first.")
    return _engine


def get_session() -> scoped_session:
    """Thread-local session used inside requests and CLI commands."""

    return SessionLocal


def new_session() -> Session:
    """Independent session for work running outside the request scope."""

    return Session(get_engine())
