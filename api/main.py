from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.observability import configure_logging, install_request_logging
from api.ratelimit import configure_limiter, rate_limit_exceeded_handler
from api.routes import router
from core.config import Settings, get_settings
from core.db import get_session_factory, reset_engine
from core.errors import SubstitutionError
from core.services.substitution.catalog import DatabaseWorkoutCatalog, StaticWorkoutCatalog, WorkoutCatalog
from core.services.substitution.engine import SubstitutionEngine
from core.services.substitution.guardrails import GuardrailManager, HttpGuardrailManager
from core.services.workout_library import BUILTIN_TEMPLATES

logger = logging.getLogger(__name__)


def build_catalog(settings: Settings) -> WorkoutCatalog:
    if settings.catalog_source == "builtin":
        return StaticWorkoutCatalog(BUILTIN_TEMPLATES.values())
    return DatabaseWorkoutCatalog(get_session_factory(settings.database_url))


def build_guardrail_manager(settings: Settings) -> GuardrailManager | None:
    if not settings.guardrail_url:
        return None
    return HttpGuardrailManager(settings.guardrail_url, timeout=settings.guardrail_timeout_seconds)


def build_engine(settings: Settings, catalog: WorkoutCatalog, guardrail_manager: GuardrailManager | None) -> SubstitutionEngine:
    return SubstitutionEngine(
        catalog,
        guardrail_manager,
        fail_open_on_guardrail_error=settings.fail_open_on_guardrail_error,
        max_results=settings.max_substitutions,
        default_available_time=settings.default_available_time_min,
        logger=logging.getLogger("core.services.substitution.engine"),
    )


def startup_warnings(settings: Settings, guardrail_manager: GuardrailManager | None) -> list[str]:
    """Configuration combinations that leave the service up but unable to answer."""
    warnings = []
    if guardrail_manager is None and not settings.fail_open_on_guardrail_error:
        warnings.append("guardrails fail closed with no GUARDRAIL_URL; every substitution request will be blocked")
    return warnings


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}" if loc else str(err.get("msg", "invalid value")))
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request"


def create_app(
    settings: Settings | None = None,
    *,
    catalog: WorkoutCatalog | None = None,
    guardrail_manager: GuardrailManager | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    catalog = catalog or build_catalog(settings)
    guardrail_manager = guardrail_manager or build_guardrail_manager(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "app_started",
            extra={
                "app_env": settings.app_env,
                "catalog_source": settings.catalog_source,
                "guardrails": "remote" if guardrail_manager is not None else "none",
                "fail_open_on_guardrail_error": settings.fail_open_on_guardrail_error,
            },
        )
        for warning in startup_warnings(settings, guardrail_manager):
            logger.warning("startup_misconfiguration", extra={"detail": warning})
        try:
            yield
        finally:
            if isinstance(catalog, DatabaseWorkoutCatalog):
                reset_engine()

    app = FastAPI(title="Workout Substitution API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.substitution_engine = build_engine(settings, catalog, guardrail_manager)

    app.state.limiter = configure_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(SubstitutionError)
    async def substitution_error_handler(request: Request, exc: SubstitutionError) -> JSONResponse:
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "VALIDATION_ERROR", _validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        message = str(exc) if settings.is_dev else "Internal server error"
        return _error_response(500, "INTERNAL_ERROR", message)

    app.include_router(router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    install_request_logging(app, settings.request_id_header_name or "X-Request-ID")

    return app
