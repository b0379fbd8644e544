from __future__ import annotations

from dataclasses import dataclass

from core.db import QueryStats

SLOW_QUERY_LIMIT = 10
WARMUP_SAMPLES = 5


@dataclass
class ServiceStatus:
    status: str
    message: str


def service_status(stats: QueryStats, catalog_size: int | None) -> ServiceStatus:
    """Summarize catalog health for the /health endpoint."""
    if catalog_size == 0:
        return ServiceStatus("WARN", "Workout catalog is empty")
    if stats.total < WARMUP_SAMPLES:
        return ServiceStatus("OK", f"Warmup ({stats.total} samples)")
    if stats.slow > SLOW_QUERY_LIMIT:
        return ServiceStatus("WARN", "Slow query threshold exceeded")
    return ServiceStatus("OK", "Nominal")
