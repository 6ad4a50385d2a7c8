"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from storefront import create_app  # noqa: E402
from storefront.database import Base, SessionLocal, get_engine  # noqa: E402
from storefront.models import ExchangeRateRecord  # noqa: E402
from storefront.services.notifier import ChangeFeed, NotifierGroup  # noqa: E402
from storefront.services.rate_cache import RateCache  # noqa: E402
from storefront.services.synchronizer import (  # noqa: E402
    CACHE_EXT_KEY,
    FEED_EXT_KEY,
    SYNCHRONIZER_EXT_KEY,
    RateSynchronizer,
)
from tests.fakes import ManualTicker, RecordingNotifier, SequencedSource  # noqa: E402


@pytest.fixture(scope="session")
def app(tmp_path_factory: pytest.TempPathFactory) -> Iterator:
    """Session-wide Flask application backed by a temporary SQLite database."""

    db_path = tmp_path_factory.mktemp("db") / "test.db"
    flask_app = create_app("testing", {"SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}"})

    engine = get_engine()
    Base.metadata.create_all(engine)

    yield flask_app

    SessionLocal.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def db_session(app) -> Iterator:
    """Session on an empty exchange_rates table, emptied again afterwards."""

    session = SessionLocal()
    session.query(ExchangeRateRecord).delete()
    session.commit()
    try:
        yield session
    finally:
        session.rollback()
        session.query(ExchangeRateRecord).delete()
        session.commit()
        SessionLocal.remove()


@pytest.fixture()
def wired_sync(app) -> Iterator[SimpleNamespace]:
    """Swap the app's synchronizer for one driven by fakes and a manual ticker."""

    keys = (CACHE_EXT_KEY, FEED_EXT_KEY, SYNCHRONIZER_EXT_KEY)
    saved = {key: app.extensions.get(key) for key in keys}

    source = SequencedSource(name="fake")
    cache = RateCache()
    feed = ChangeFeed(maxlen=5)
    recorder = RecordingNotifier()
    ticker = ManualTicker()
    synchronizer = RateSynchronizer(
        source=source,
        cache=cache,
        notifier=NotifierGroup([recorder, feed]),
        ticker=ticker,
        interval_seconds=30,
    )
    app.extensions[CACHE_EXT_KEY] = cache
    app.extensions[FEED_EXT_KEY] = feed
    app.extensions[SYNCHRONIZER_EXT_KEY] = synchronizer

    yield SimpleNamespace(
        source=source,
        cache=cache,
        feed=feed,
        recorder=recorder,
        ticker=ticker,
        synchronizer=synchronizer,
    )

    synchronizer.stop()
    for key, value in saved.items():
        app.extensions[key] = value
