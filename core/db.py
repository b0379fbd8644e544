"""Catalog database engines, sessions and query timing.

Engines are kept per URL so an app built from injected settings and the
environment-driven tooling (seeding, migrations) can point at different
databases in the same process.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from core.config import database_url
from core.models import Base

__all__ = [
    "Base",
    "QueryStats",
    "SLOW_QUERY_MS",
    "get_engine",
    "get_query_stats",
    "get_session_factory",
    "reset_engine",
    "session_scope",
]

SLOW_QUERY_MS = 250.0
QUERY_WINDOW = 500


@dataclass
class QueryStats:
    """Catalog query timings reported by /health, over the most recent window."""
    total: int = 0
    slow: int = 0
    p95_ms: float = 0.0


_lock = threading.Lock()
_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}
_durations_ms: deque[float] = deque(maxlen=QUERY_WINDOW)


def _time_queries(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        context._catalog_query_started = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def _stop(conn, cursor, statement, parameters, context, executemany):
        _durations_ms.append((time.perf_counter() - context._catalog_query_started) * 1000)


def get_engine(url: str | None = None) -> Engine:
    """Engine for ``url``, or for DATABASE_URL when no url is given. Created once per URL."""
    url = url or database_url()
    with _lock:
        engine = _engines.get(url)
        if engine is None:
            connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
            engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
            _time_queries(engine)
            _engines[url] = engine
        return engine


def get_session_factory(url: str | None = None) -> sessionmaker:
    url = url or database_url()
    factory = _session_factories.get(url)
    if factory is None:
        factory = sessionmaker(bind=get_engine(url), autoflush=False, expire_on_commit=False)
        _session_factories[url] = factory
    return factory


def reset_engine() -> None:
    """Dispose every engine and forget recorded query timings."""
    with _lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()
        _session_factories.clear()
        _durations_ms.clear()


@contextmanager
def session_scope(url: str | None = None) -> Iterator[Session]:
    session = get_session_factory(url)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_query_stats() -> QueryStats:
    if not _durations_ms:
        return QueryStats()
    ordered = sorted(_durations_ms)
    p95 = ordered[max(0, math.ceil(len(ordered) * 0.95) - 1)]
    return QueryStats(
        total=len(ordered),
        slow=sum(1 for ms in ordered if ms > SLOW_QUERY_MS),
        p95_ms=round(p95, 2),
    )
