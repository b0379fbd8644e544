from __future__ import annotations

from fastapi import Request

from core.services.substitution.catalog import WorkoutCatalog
from core.services.substitution.engine import SubstitutionEngine


def get_engine(request: Request) -> SubstitutionEngine:
    return request.app.state.substitution_engine


def get_catalog(request: Request) -> WorkoutCatalog:
    return request.app.state.catalog
