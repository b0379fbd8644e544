from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from core.services.substitution.engine import SubstitutionResult
from core.services.substitution.models import ScaledCandidate, WorkoutTemplate


class BlockOut(BaseModel):
    block_type: str
    intensity: str
    duration_minutes: Optional[float] = None
    sets: Optional[int] = None
    work_duration_s: Optional[float] = None
    rest_duration_s: Optional[float] = None


class SubstitutionOut(BaseModel):
    id: str
    name: str
    modality: str
    category: str
    adaptation: str
    adaptation_match: str
    duration_minutes: float
    estimated_load: float
    load_variance_percent: float
    confidence_score: float
    quality_score: float
    scaling_factor: float
    equipment_required: list[str] = Field(default_factory=list)
    reasoning: str
    structure: list[BlockOut] = Field(default_factory=list)
    guardrail_status: str
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_candidate(cls, c: ScaledCandidate) -> "SubstitutionOut":
        return cls(
            id=c.template_id,
            name=c.name,
            modality=c.modality.value,
            category=c.category,
            adaptation=c.adaptation,
            adaptation_match=c.adaptation_match.value,
            duration_minutes=c.scaled_duration,
            estimated_load=c.calculated_load,
            load_variance_percent=c.load_variance_percentage,
            confidence_score=c.confidence_score,
            quality_score=c.quality_score,
            scaling_factor=c.scaling_factor,
            equipment_required=sorted(c.equipment_required),
            reasoning=c.reasoning,
            structure=[BlockOut(**b.to_dict()) for b in c.scaled_structure],
            guardrail_status=c.guardrail_status,
            warnings=list(c.warnings),
        )


class OriginalSessionOut(BaseModel):
    modality: str
    duration_minutes: float
    adaptation: str
    estimated_load: float


class TargetLoadOut(BaseModel):
    total_load: float
    method_used: str
    confidence: float
    breakdown: dict[str, Any] = Field(default_factory=dict)


class SubstitutionMetadata(BaseModel):
    original_session: OriginalSessionOut
    target_load: TargetLoadOut
    target_modality: str
    processing_time_ms: float
    stats: dict[str, Any] = Field(default_factory=dict)


class SubstitutionResponse(BaseModel):
    success: bool = True
    substitutions: list[SubstitutionOut]
    metadata: SubstitutionMetadata

    @classmethod
    def from_result(cls, result: SubstitutionResult, processing_time_ms: float, stats: dict[str, Any]):
        analysis = result.analysis
        return cls(
            substitutions=[SubstitutionOut.from_candidate(c) for c in result.substitutions],
            metadata=SubstitutionMetadata(
                original_session=OriginalSessionOut(
                    modality=analysis.modality.value,
                    duration_minutes=analysis.duration_minutes,
                    adaptation=analysis.adaptation,
                    estimated_load=result.target_load.total_load,
                ),
                target_load=TargetLoadOut(**result.target_load.to_dict()),
                target_modality=result.target_modality.value,
                processing_time_ms=round(processing_time_ms, 2),
                stats=stats,
            ),
        )


class WorkoutTemplateOut(BaseModel):
    template_id: str
    name: str
    modality: str
    category: str
    adaptation: str
    difficulty_level: str
    estimated_load: float
    time_required_minutes: float
    equipment_required: list[str] = Field(default_factory=list)
    structure: list[BlockOut] = Field(default_factory=list)

    @classmethod
    def from_template(cls, t: WorkoutTemplate) -> "WorkoutTemplateOut":
        return cls(**t.to_dict())


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


class HealthOut(BaseModel):
    status: str
    message: str
    app_env: str
    catalog_source: str
    catalog_size: Optional[int] = None
    query_total: int = 0
    query_slow: int = 0
    query_p95_ms: float = 0.0
