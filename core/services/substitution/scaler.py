"""Rescale a candidate template so its load matches the planned session."""

from __future__ import annotations

import math
from dataclasses import replace

from core.errors import InvalidConversionError
from core.services.substitution.analyzer import analyze_structure
from core.services.substitution.candidates import Candidate
from core.services.substitution.equivalence import calculate_confidence, get_time_factor, validate_duration_limits
from core.services.substitution.load import compute_load
from core.services.substitution.models import Block, Modality, ScaledCandidate, SessionAnalysis, TargetLoad

MIN_WORK_SECONDS = 10
MIN_REST_SECONDS = 5
MIN_BLOCK_MINUTES = 1
MAX_REST_FACTOR = 1.2

CORRECTION_THRESHOLD = 0.05
CORRECTION_BOUNDS = (0.8, 1.2)

# Guards floor() against products like 49.99999999 that should be 50
_FLOOR_EPSILON = 1e-9


def _floor(value: float) -> int:
    return math.floor(value + _FLOOR_EPSILON)


def scale_block(block: Block, factor: float) -> Block:
    """Scale one main block. Warmup and cooldown blocks are returned as-is."""
    if block.block_type != "main":
        return block
    if block.is_interval:
        return replace(
            block,
            work_duration_s=float(max(MIN_WORK_SECONDS, _floor(block.work_duration_s * factor))),
            rest_duration_s=float(max(MIN_REST_SECONDS, _floor(block.rest_duration_s * min(MAX_REST_FACTOR, factor)))),
        )
    return replace(block, duration_minutes=float(max(MIN_BLOCK_MINUTES, _floor(block.duration_minutes * factor))))


def scale_structure(structure: tuple[Block, ...], factor: float) -> tuple[Block, ...]:
    return tuple(scale_block(b, factor) for b in structure)


def load_variance(calculated: float, target: float) -> float:
    return abs(calculated - target) / max(target, 1.0)


def _evaluate(candidate: Candidate, factor: float, target_total: float):
    template = candidate.template
    structure = scale_structure(template.structure, factor)
    analysis = analyze_structure(structure, modality=template.modality, adaptation=template.adaptation)
    # Templates without zoned main blocks fall back to MET load at the default zone
    analysis = replace(analysis, intensity=analysis.primary_zone)
    calculated = compute_load(analysis).total_load
    return structure, analysis, calculated, load_variance(calculated, target_total)


def scale_candidate(
    candidate: Candidate,
    session: SessionAnalysis,
    target_load: TargetLoad,
    source_modality: Modality,
    target_modality: Modality,
) -> ScaledCandidate:
    """Scale a candidate's main blocks by the modality time factor, then try one bounded correction.

    The correction rescales the original template with
    ``time_factor * clamp(target / calculated, 0.8, 1.2)`` and is kept only
    when it strictly lowers the load variance.

    Raises:
        InvalidConversionError: when no usable time factor exists for the pair.
        InsufficientDataError: when the scaled structure has no computable load.
    """
    time_factor = get_time_factor(source_modality, target_modality, session.primary_zone)
    if not math.isfinite(time_factor) or time_factor <= 0:
        raise InvalidConversionError(f"Invalid time factor {time_factor} for {source_modality} to {target_modality}")

    target_total = target_load.total_load
    factor = time_factor
    structure, analysis, calculated, variance = _evaluate(candidate, factor, target_total)
    corrected = False

    if calculated > 0:
        correction = target_total / calculated
        if abs(correction - 1.0) > CORRECTION_THRESHOLD:
            low, high = CORRECTION_BOUNDS
            correction = max(low, min(high, correction))
            retry = _evaluate(candidate, time_factor * correction, target_total)
            if retry[3] < variance:
                structure, analysis, calculated, variance = retry
                factor = time_factor * correction
                corrected = True

    confidence = calculate_confidence(
        source_adaptation=session.adaptation,
        target_adaptation=candidate.template.adaptation,
        zone=session.primary_zone,
        duration_minutes=analysis.duration_minutes,
        load_variance=variance,
    )

    warnings: list[str] = []
    if analysis.zone_distribution:
        zone = analysis.primary_zone
        zone_check = validate_duration_limits(zone, analysis.zone_distribution[zone])
        if not zone_check.valid:
            warnings.append(zone_check.reason)

    return ScaledCandidate(
        template=candidate.template,
        adaptation_match=candidate.adaptation_match,
        scaled_duration=analysis.duration_minutes,
        scaled_structure=structure,
        scaling_factor=round(factor, 4),
        calculated_load=calculated,
        load_variance=round(variance, 4),
        load_variance_percentage=round(variance * 100, 1),
        confidence_score=round(confidence, 2),
        correction_applied=corrected,
        warnings=tuple(warnings),
    )
