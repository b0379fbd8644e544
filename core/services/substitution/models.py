"""Value types shared by the substitution pipeline.

All types are frozen; stages derive new values with ``dataclasses.replace``
rather than mutating or deep-copying what they were given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from core.errors import ValidationError


ZONES = ("Z1", "Z2", "Z3", "Z4", "Z5")
BLOCK_TYPES = ("warmup", "main", "cooldown")


class Modality(str, Enum):
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"

    @classmethod
    def parse(cls, value: Any) -> "Modality":
        """Coerce a string (any case, surrounding whitespace) to a Modality or raise ValidationError."""
        if isinstance(value, Modality):
            return value
        token = str(value or "").strip().lower()
        try:
            return cls(token)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(f"Invalid modality '{value}'. Must be one of: {allowed}") from None


class MatchKind(str, Enum):
    EXACT = "exact"
    COMPATIBLE = "compatible"
    INCOMPATIBLE = "incompatible"


class LoadMethod(str, Enum):
    RPE_DURATION = "RPE_Duration"
    ZONE_RPE = "Zone_RPE"
    MET_MINUTES = "MET_Minutes"


@dataclass(frozen=True)
class Block:
    """One segment of a session.

    Continuous blocks set ``duration_minutes``; interval blocks set ``sets``,
    ``work_duration_s`` and ``rest_duration_s``. Exactly one shape is allowed.
    """
    block_type: str
    intensity: str
    duration_minutes: float | None = None
    sets: int | None = None
    work_duration_s: float | None = None
    rest_duration_s: float | None = None

    def __post_init__(self) -> None:
        if self.block_type not in BLOCK_TYPES:
            raise ValidationError(f"Unknown block_type '{self.block_type}'. Must be one of: {', '.join(BLOCK_TYPES)}")
        continuous = self.duration_minutes is not None
        interval_fields = (self.sets, self.work_duration_s, self.rest_duration_s)
        has_any_interval = any(v is not None for v in interval_fields)
        has_all_interval = all(v is not None for v in interval_fields)
        if continuous == has_any_interval:
            raise ValidationError(
                "Block must define either duration_minutes or sets/work_duration_s/rest_duration_s, not both or neither"
            )
        if has_any_interval and not has_all_interval:
            raise ValidationError("Interval block requires sets, work_duration_s and rest_duration_s")
        if continuous and self.duration_minutes < 0:
            raise ValidationError("Block duration_minutes must be >= 0")
        if has_all_interval and (self.sets < 0 or self.work_duration_s < 0 or self.rest_duration_s < 0):
            raise ValidationError("Interval block values must be >= 0")

    @property
    def is_interval(self) -> bool:
        return self.sets is not None

    @property
    def work_minutes(self) -> float:
        """Minutes spent at the block's intensity (rest excluded)."""
        if self.is_interval:
            return self.work_duration_s * self.sets / 60.0
        return float(self.duration_minutes)

    @property
    def total_minutes(self) -> float:
        """Wall-clock minutes including interval rest."""
        if self.is_interval:
            return (self.work_duration_s + self.rest_duration_s) * self.sets / 60.0
        return float(self.duration_minutes)

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"block_type": self.block_type, "intensity": self.intensity}
        if self.is_interval:
            row.update(sets=self.sets, work_duration_s=self.work_duration_s, rest_duration_s=self.rest_duration_s)
        else:
            row["duration_minutes"] = self.duration_minutes
        return row

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Block":
        """Build a Block from catalog JSON, accepting the legacy ``duration``/``work_duration``/``rest_duration`` keys."""
        def pick(*keys: str) -> Any:
            for key in keys:
                if raw.get(key) is not None:
                    return raw[key]
            return None

        sets = pick("sets")
        return cls(
            block_type=str(pick("block_type", "type") or ""),
            intensity=str(pick("intensity") or ""),
            duration_minutes=None if sets is not None else _float_or_none(pick("duration_minutes", "duration")),
            sets=int(sets) if sets is not None else None,
            work_duration_s=_float_or_none(pick("work_duration_s", "work_duration")) if sets is not None else None,
            rest_duration_s=_float_or_none(pick("rest_duration_s", "rest_duration")) if sets is not None else None,
        )


def _float_or_none(value: Any) -> float | None:
    return None if value is None else float(value)


@dataclass(frozen=True)
class PlannedSession:
    """The session the athlete was supposed to do."""
    modality: Modality
    duration_minutes: float = 0.0
    adaptation: str = "general"
    structure: tuple[Block, ...] = ()
    intensity: str | None = None   # flat zone when no structure is given
    rpe: float | None = None


@dataclass(frozen=True)
class WorkoutTemplate:
    """Read-only catalog entry."""
    template_id: str
    name: str
    modality: Modality
    category: str
    adaptation: str
    estimated_load: float
    time_required_minutes: float
    equipment_required: frozenset[str] = frozenset()
    structure: tuple[Block, ...] = ()
    difficulty_level: str = "intermediate"

    def to_dict(self) -> dict[str, Any]:
        return {
            "template_id": self.template_id,
            "name": self.name,
            "modality": self.modality.value,
            "category": self.category,
            "adaptation": self.adaptation,
            "difficulty_level": self.difficulty_level,
            "estimated_load": self.estimated_load,
            "time_required_minutes": self.time_required_minutes,
            "equipment_required": sorted(self.equipment_required),
            "structure": [b.to_dict() for b in self.structure],
        }


@dataclass(frozen=True)
class UserContext:
    """Per-request constraints; ``equipment=None`` means the caller did not constrain equipment."""
    equipment: frozenset[str] | None = None
    available_time: float | None = None
    user_profile: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    recent_sessions: tuple[Mapping[str, Any], ...] = ()
    readiness_data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class SessionAnalysis:
    """Normalized view of a session; also the input shape for load calculation."""
    modality: Modality | None
    duration_minutes: float
    adaptation: str
    zone_distribution: Mapping[str, float]
    primary_zone: str
    intensity_profile: str           # high | moderate_high | moderate
    intensity: str | None = None
    rpe: float | None = None


@dataclass(frozen=True)
class TargetLoad:
    total_load: float
    method_used: LoadMethod
    confidence: float
    breakdown: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_load": self.total_load,
            "method_used": self.method_used.value,
            "confidence": self.confidence,
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class AdaptationCheck:
    compatible: bool
    match: MatchKind
    confidence_bonus: float


@dataclass(frozen=True)
class DurationCheck:
    valid: bool
    reason: str | None = None
    warning: str | None = None


@dataclass(frozen=True)
class GuardrailDecision:
    """Result shape of the external guardrail policy."""
    is_allowed: bool
    warnings: tuple[str, ...] = ()
    auto_adjustments: tuple[Mapping[str, Any], ...] = ()
    blocks: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScaledCandidate:
    """A catalog template rescaled to the planned session's load."""
    template: WorkoutTemplate
    adaptation_match: MatchKind
    scaled_duration: float
    scaled_structure: tuple[Block, ...]
    scaling_factor: float
    calculated_load: float
    load_variance: float
    load_variance_percentage: float
    confidence_score: float
    correction_applied: bool = False
    quality_score: float = 0.0
    guardrail_status: str = "pending"
    warnings: tuple[str, ...] = ()
    reasoning: str = ""
    is_substitution: bool = True
    substitution_method: str = "time_factor_scaling"

    @property
    def template_id(self) -> str:
        return self.template.template_id

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def modality(self) -> Modality:
        return self.template.modality

    @property
    def category(self) -> str:
        return self.template.category

    @property
    def adaptation(self) -> str:
        return self.template.adaptation

    @property
    def equipment_required(self) -> frozenset[str]:
        return self.template.equipment_required

    def to_dict(self) -> dict[str, Any]:
        row = self.template.to_dict()
        row.update(
            adaptation_match=self.adaptation_match.value,
            scaled_duration=self.scaled_duration,
            scaled_structure=[b.to_dict() for b in self.scaled_structure],
            scaling_factor=self.scaling_factor,
            calculated_load=self.calculated_load,
            load_variance=self.load_variance,
            load_variance_percentage=self.load_variance_percentage,
            confidence_score=self.confidence_score,
            correction_applied=self.correction_applied,
            quality_score=self.quality_score,
            guardrail_status=self.guardrail_status,
            warnings=list(self.warnings),
            reasoning=self.reasoning,
            is_substitution=self.is_substitution,
            substitution_method=self.substitution_method,
        )
        return row
