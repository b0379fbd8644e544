from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Float, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class WorkoutTemplateRecord(Base):
    """Catalog row for one pre-built workout template.

    ``structure_json`` holds the ordered block list exactly as accepted by the
    API (``block_type``, ``intensity`` and either ``duration_minutes`` or
    ``sets``/``work_duration_s``/``rest_duration_s``).
    """

    __tablename__ = "workout_templates"
    __table_args__ = (
        CheckConstraint("modality in ('running', 'cycling', 'swimming')", name="ck_workout_templates_modality"),
        CheckConstraint("time_required_minutes >= 0", name="ck_workout_templates_time_required"),
        Index("ix_workout_templates_modality_adaptation", "modality", "adaptation"),
    )

    template_id: Mapped[str] = mapped_column(String(80), primary_key=True)
    name: Mapped[str] = mapped_column(String(180))
    modality: Mapped[str] = mapped_column(String(20), index=True)
    category: Mapped[str] = mapped_column(String(60))
    adaptation: Mapped[str] = mapped_column(String(60))
    difficulty_level: Mapped[str] = mapped_column(String(20), default="intermediate")
    estimated_load: Mapped[float] = mapped_column(Float, default=0.0)
    time_required_minutes: Mapped[float] = mapped_column(Float)
    equipment_json: Mapped[list[str]] = mapped_column(JSON, default=list)
    structure_json: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
