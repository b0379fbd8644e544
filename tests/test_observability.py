"""Tests for health status and JSON logging."""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.observability import JsonFormatter, bound_request_id, current_request_id, install_request_logging
from core.db import QueryStats
from core.observability import ServiceStatus, service_status


def test_service_status_warmup():
    s = service_status(QueryStats(total=2), catalog_size=10)
    assert s.status == "OK"
    assert "Warmup" in s.message


def test_service_status_nominal_and_slow():
    assert service_status(QueryStats(total=50, slow=0), catalog_size=10).message == "Nominal"
    slow = service_status(QueryStats(total=50, slow=15), catalog_size=10)
    assert slow.status == "WARN"
    assert "Slow query" in slow.message


def test_service_status_empty_catalog():
    assert service_status(QueryStats(total=50), catalog_size=0) == ServiceStatus("WARN", "Workout catalog is empty")
    assert service_status(QueryStats(total=50), catalog_size=None).status == "OK"


def _record(msg, **extra):
    record = logging.LogRecord(
        name="core.services.substitution.engine", level=logging.INFO, pathname="engine.py",
        lineno=1, msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_and_request_id():
    with bound_request_id("req-123"):
        payload = json.loads(JsonFormatter().format(_record("substitution_request", target="cycling", target_load=100.0)))
    assert current_request_id() is None
    assert payload["message"] == "substitution_request"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-123"
    assert payload["target"] == "cycling"
    assert payload["target_load"] == 100.0


def test_json_formatter_includes_exception():
    formatter = JsonFormatter()
    try:
        raise ValueError("boom")
    except ValueError:
        import sys

        record = _record("substitution_failed")
        record.exc_info = sys.exc_info()
    payload = json.loads(formatter.format(record))
    assert "ValueError: boom" in payload["exc_info"]
    assert "request_id" not in payload


def _tiny_app():
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"request_id": current_request_id()}

    install_request_logging(app, "X-Correlation-ID")
    return app


def test_request_id_is_bound_and_echoed():
    client = TestClient(_tiny_app())
    resp = client.get("/ping", headers={"X-Correlation-ID": "corr-7"})
    assert resp.json() == {"request_id": "corr-7"}
    assert resp.headers["X-Correlation-ID"] == "corr-7"


def test_request_id_is_generated_when_missing():
    client = TestClient(_tiny_app())
    resp = client.get("/ping")
    generated = resp.headers["X-Correlation-ID"]
    assert len(generated) == 32
    assert resp.json() == {"request_id": generated}


def test_query_stats_track_catalog_queries():
    from sqlalchemy import text

    from core.db import get_engine, get_query_stats, reset_engine

    reset_engine()
    assert get_query_stats() == QueryStats()
    with get_engine("sqlite://").connect() as conn:
        for _ in range(3):
            conn.execute(text("select 1"))
    stats = get_query_stats()
    assert stats.total == 3
    assert stats.slow == 0
    assert stats.p95_ms >= 0
    reset_engine()
