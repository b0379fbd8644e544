"""Workout catalog adapters.

The engine only reads templates through the WorkoutCatalog interface, so the
source (in-memory library, SQL table, remote service) stays swappable.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.models import WorkoutTemplateRecord
from core.services.substitution.models import Block, Modality, WorkoutTemplate

logger = logging.getLogger(__name__)


def template_from_dict(raw: Mapping[str, Any]) -> WorkoutTemplate:
    """Build a WorkoutTemplate from a plain mapping (library entry or API payload)."""
    return WorkoutTemplate(
        template_id=str(raw["template_id"]),
        name=str(raw["name"]),
        modality=Modality.parse(raw["modality"]),
        category=str(raw.get("category", "")),
        adaptation=str(raw.get("adaptation", "general")),
        estimated_load=float(raw.get("estimated_load", 0.0) or 0.0),
        time_required_minutes=float(raw.get("time_required_minutes", raw.get("time_required", 0.0)) or 0.0),
        equipment_required=frozenset(raw.get("equipment_required") or ()),
        structure=tuple(Block.from_dict(b) for b in raw.get("structure") or ()),
        difficulty_level=str(raw.get("difficulty_level", "intermediate")),
    )


def template_from_record(record: WorkoutTemplateRecord) -> WorkoutTemplate:
    return WorkoutTemplate(
        template_id=record.template_id,
        name=record.name,
        modality=Modality.parse(record.modality),
        category=record.category,
        adaptation=record.adaptation,
        estimated_load=float(record.estimated_load or 0.0),
        time_required_minutes=float(record.time_required_minutes),
        equipment_required=frozenset(record.equipment_json or ()),
        structure=tuple(Block.from_dict(b) for b in record.structure_json or ()),
        difficulty_level=record.difficulty_level or "intermediate",
    )


def record_from_template(template: WorkoutTemplate) -> WorkoutTemplateRecord:
    return WorkoutTemplateRecord(
        template_id=template.template_id,
        name=template.name,
        modality=template.modality.value,
        category=template.category,
        adaptation=template.adaptation,
        difficulty_level=template.difficulty_level,
        estimated_load=template.estimated_load,
        time_required_minutes=template.time_required_minutes,
        equipment_json=sorted(template.equipment_required),
        structure_json=[b.to_dict() for b in template.structure],
    )


class WorkoutCatalog(ABC):
    """Read-only source of workout templates."""

    @abstractmethod
    async def get_workouts_by_modality(self, modality: Modality) -> list[WorkoutTemplate]:
        """Return every template for a modality, in a stable order."""

    @abstractmethod
    async def get_workout_by_id(self, template_id: str) -> WorkoutTemplate | None:
        """Return one template or None."""


class StaticWorkoutCatalog(WorkoutCatalog):
    """In-memory catalog over a fixed template list."""

    def __init__(self, templates: Iterable[WorkoutTemplate]):
        self._templates = tuple(templates)

    async def get_workouts_by_modality(self, modality: Modality) -> list[WorkoutTemplate]:
        modality = Modality.parse(modality)
        return [t for t in self._templates if t.modality == modality]

    async def get_workout_by_id(self, template_id: str) -> WorkoutTemplate | None:
        return next((t for t in self._templates if t.template_id == template_id), None)


class DatabaseWorkoutCatalog(WorkoutCatalog):
    """Catalog backed by the ``workout_templates`` table.

    Queries run in a worker thread so the event loop is never blocked on the
    synchronous SQLAlchemy session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _query(self, statement) -> list[WorkoutTemplate]:
        session = self._session_factory()
        try:
            rows = session.execute(statement).scalars().all()
            return [template_from_record(r) for r in rows]
        finally:
            session.close()

    async def get_workouts_by_modality(self, modality: Modality) -> list[WorkoutTemplate]:
        modality = Modality.parse(modality)
        statement = (
            select(WorkoutTemplateRecord)
            .where(WorkoutTemplateRecord.modality == modality.value)
            .order_by(WorkoutTemplateRecord.template_id)
        )
        templates = await asyncio.to_thread(self._query, statement)
        logger.debug("catalog_lookup", extra={"modality": modality.value, "count": len(templates)})
        return templates

    async def get_workout_by_id(self, template_id: str) -> WorkoutTemplate | None:
        statement = select(WorkoutTemplateRecord).where(WorkoutTemplateRecord.template_id == template_id)
        templates = await asyncio.to_thread(self._query, statement)
        return templates[0] if templates else None
