"""Database setup for the workout catalog.

Applies Alembic migrations and loads the built-in template library into the
``workout_templates`` table. Seeding is idempotent: existing template ids are
left untouched unless ``refresh=True``.
"""
from __future__ import annotations

import logging
from typing import Iterable

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from core.db import session_scope
from core.models import WorkoutTemplateRecord
from core.services.substitution.catalog import record_from_template
from core.services.substitution.models import WorkoutTemplate
from core.services.workout_library import BUILTIN_TEMPLATES

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


def seed_workout_templates(
    templates: Iterable[WorkoutTemplate] | None = None, *, refresh: bool = False, url: str | None = None
) -> int:
    """Insert library templates missing from the table at ``url`` (default DATABASE_URL).

    Returns the number of rows written.
    """
    templates = list(BUILTIN_TEMPLATES.values() if templates is None else templates)
    written = 0
    with session_scope(url) as s:
        existing = set(s.execute(select(WorkoutTemplateRecord.template_id)).scalars().all())
        for template in templates:
            if template.template_id in existing:
                if not refresh:
                    continue
                s.delete(s.get(WorkoutTemplateRecord, template.template_id))
                s.flush()
            s.add(record_from_template(template))
            written += 1
    logger.info("workout_templates_seeded", extra={"written": written, "library_size": len(templates)})
    return written


def setup_database(*, refresh: bool = False) -> int:
    run_migrations()
    return seed_workout_templates(refresh=refresh)
