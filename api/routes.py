import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import func, select

from api.deps import get_catalog, get_engine
from api.observability import clock_ms
from api.ratelimit import limiter, substitution_limit
from api.schemas import ErrorResponse, HealthOut, SubstitutionResponse, WorkoutTemplateOut
from core.db import get_query_stats, session_scope
from core.models import WorkoutTemplateRecord
from core.observability import service_status
from core.services.substitution.catalog import DatabaseWorkoutCatalog, WorkoutCatalog
from core.services.substitution.engine import SubstitutionEngine
from core.services.substitution.models import Modality
from core.services.substitution.ranking import substitution_stats
from core.validators import SubstitutionRequest

logger = logging.getLogger(__name__)
router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/substitutions", response_model=SubstitutionResponse, responses=_ERROR_RESPONSES, tags=["substitutions"])
@limiter.limit(substitution_limit)
async def create_substitutions(
    request: Request,
    response: Response,
    payload: SubstitutionRequest,
    engine: Annotated[SubstitutionEngine, Depends(get_engine)],
):
    started_ms = clock_ms()
    result = await engine.plan_substitutions(
        payload.planned_session.to_session(),
        payload.target_modality,
        payload.user_context.to_context(),
    )
    return SubstitutionResponse.from_result(
        result,
        processing_time_ms=clock_ms() - started_ms,
        stats=substitution_stats(result.substitutions),
    )


@router.get("/workouts/{modality}", response_model=list[WorkoutTemplateOut], responses=_ERROR_RESPONSES, tags=["catalog"])
async def list_workouts(modality: str, catalog: Annotated[WorkoutCatalog, Depends(get_catalog)]):
    templates = await catalog.get_workouts_by_modality(Modality.parse(modality))
    return [WorkoutTemplateOut.from_template(t) for t in templates]


def _count_templates(url: str) -> int:
    with session_scope(url) as s:
        return int(s.execute(select(func.count()).select_from(WorkoutTemplateRecord)).scalar_one())


@router.get("/health", response_model=HealthOut, tags=["health"])
async def health(request: Request, catalog: Annotated[WorkoutCatalog, Depends(get_catalog)]):
    settings = request.app.state.settings
    catalog_size = None
    if isinstance(catalog, DatabaseWorkoutCatalog):
        try:
            catalog_size = await asyncio.to_thread(_count_templates, settings.database_url)
        except Exception as exc:
            logger.warning("health_catalog_unavailable", extra={"error": str(exc)})
            return HealthOut(
                status="ERROR",
                message="Workout catalog unavailable",
                app_env=settings.app_env,
                catalog_source=settings.catalog_source,
            )
    else:
        catalog_size = sum([len(await catalog.get_workouts_by_modality(m)) for m in Modality])

    stats = get_query_stats()
    strip = service_status(stats, catalog_size)
    return HealthOut(
        status=strip.status,
        message=strip.message,
        app_env=settings.app_env,
        catalog_source=settings.catalog_source,
        catalog_size=catalog_size,
        query_total=stats.total,
        query_slow=stats.slow,
        query_p95_ms=stats.p95_ms,
    )
