"""Pydantic validation models for the substitution request body."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from core.services.substitution.models import ZONES, Block, Modality, PlannedSession, UserContext


def _modality(value: Any) -> str:
    token = str(value or "").strip().lower()
    allowed = {m.value for m in Modality}
    if token not in allowed:
        raise ValueError(f"modality must be one of {sorted(allowed)}")
    return token


class BlockInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    block_type: str = Field(validation_alias=AliasChoices("block_type", "type"))
    intensity: str = Field(min_length=1, max_length=20)
    duration_minutes: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("duration_minutes", "duration")
    )
    sets: Optional[int] = Field(default=None, ge=0, le=100)
    work_duration_s: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("work_duration_s", "work_duration")
    )
    rest_duration_s: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("rest_duration_s", "rest_duration")
    )

    @field_validator("block_type")
    @classmethod
    def valid_block_type(cls, v):
        allowed = {"warmup", "main", "cooldown"}
        token = v.strip().lower()
        if token not in allowed:
            raise ValueError(f"block_type must be one of {sorted(allowed)}")
        return token

    @model_validator(mode="after")
    def one_duration_shape(self):
        continuous = self.duration_minutes is not None
        interval = [self.sets, self.work_duration_s, self.rest_duration_s]
        if continuous and any(v is not None for v in interval):
            raise ValueError("block must be continuous (duration_minutes) or interval (sets/work/rest), not both")
        if not continuous and not all(v is not None for v in interval):
            raise ValueError("interval block requires sets, work_duration_s and rest_duration_s")
        return self

    def to_block(self) -> Block:
        return Block(
            block_type=self.block_type,
            intensity=self.intensity,
            duration_minutes=self.duration_minutes,
            sets=self.sets,
            work_duration_s=self.work_duration_s,
            rest_duration_s=self.rest_duration_s,
        )


class PlannedSessionInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    modality: str
    duration_minutes: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("duration_minutes", "duration"))
    adaptation: str = Field(default="general", max_length=80)
    structure: list[BlockInput] = Field(default_factory=list, max_length=50)
    intensity: Optional[str] = Field(default=None, max_length=20)
    rpe: Optional[float] = Field(default=None, ge=0, le=10)

    @field_validator("modality")
    @classmethod
    def valid_modality(cls, v):
        return _modality(v)

    @field_validator("intensity")
    @classmethod
    def valid_intensity(cls, v):
        if v is None:
            return v
        token = v.strip().upper()
        if not any(zone in token for zone in ZONES):
            raise ValueError(f"intensity must name a zone in {list(ZONES)}")
        return token

    def to_session(self) -> PlannedSession:
        return PlannedSession(
            modality=Modality(self.modality),
            duration_minutes=self.duration_minutes,
            adaptation=self.adaptation or "general",
            structure=tuple(b.to_block() for b in self.structure),
            intensity=self.intensity,
            rpe=self.rpe,
        )


class UserContextInput(BaseModel):
    equipment: Optional[list[str]] = None
    available_time: Optional[float] = Field(default=None, ge=0, le=24 * 60)
    user_profile: dict[str, Any] = Field(default_factory=dict)
    recent_sessions: list[dict[str, Any]] = Field(default_factory=list, max_length=200)
    readiness_data: dict[str, Any] = Field(default_factory=dict)

    def to_context(self) -> UserContext:
        return UserContext(
            equipment=frozenset(self.equipment) if self.equipment is not None else None,
            available_time=self.available_time,
            user_profile=self.user_profile,
            recent_sessions=tuple(self.recent_sessions),
            readiness_data=self.readiness_data,
        )


class SubstitutionRequest(BaseModel):
    planned_session: PlannedSessionInput
    target_modality: str
    user_context: UserContextInput = Field(default_factory=UserContextInput)

    @field_validator("target_modality")
    @classmethod
    def valid_target_modality(cls, v):
        return _modality(v)
