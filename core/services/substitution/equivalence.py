"""Cross-modality equivalence rules.

Immutable lookup tables and pure functions used to convert a session in one
modality into an equivalent session in another. This module is the single
source of truth for conversion factors: base time factors with an additive
per-zone adjustment (e.g. running -> cycling in Z2 = 1.30 + 0.03 = 1.33).
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Any, Mapping

from core.errors import InvalidConversionError
from core.services.substitution.models import AdaptationCheck, DurationCheck, MatchKind, Modality


def _key(from_modality: Modality | str, to_modality: Modality | str) -> str:
    return f"{Modality.parse(from_modality).value}_to_{Modality.parse(to_modality).value}"


def _freeze(table: dict) -> Mapping:
    return MappingProxyType({k: _freeze(v) if isinstance(v, dict) else v for k, v in table.items()})


# 1 min of <from> ~= factor min of <to>
TIME_FACTORS: Mapping[str, float] = _freeze({
    "running_to_cycling": 1.30,
    "running_to_swimming": 0.80,
    "cycling_to_running": 0.77,
    "cycling_to_swimming": 0.62,
    "swimming_to_running": 1.25,
    "swimming_to_cycling": 1.61,
})

# Added to the base time factor; easy work stretches more, hard work less
ZONE_ADJUSTMENTS: Mapping[str, Mapping[str, float]] = _freeze({
    "running_to_cycling": {"Z1": 0.05, "Z2": 0.03, "Z3": 0.00, "Z4": -0.05, "Z5": -0.10},
    "running_to_swimming": {"Z1": -0.05, "Z2": 0.00, "Z3": 0.00, "Z4": 0.05, "Z5": 0.10},
    "cycling_to_running": {"Z1": -0.05, "Z2": -0.03, "Z3": 0.00, "Z4": 0.05, "Z5": 0.10},
    "cycling_to_swimming": {"Z1": -0.10, "Z2": -0.05, "Z3": 0.00, "Z4": 0.05, "Z5": 0.15},
    "swimming_to_running": {"Z1": 0.05, "Z2": 0.00, "Z3": 0.00, "Z4": -0.05, "Z5": -0.10},
    "swimming_to_cycling": {"Z1": 0.10, "Z2": 0.05, "Z3": 0.00, "Z4": -0.05, "Z5": -0.15},
})

# Target-modality load relative to source for equal time
LOAD_FACTORS: Mapping[str, float] = _freeze({
    "running_to_cycling": 0.85,
    "running_to_swimming": 1.20,
    "cycling_to_running": 1.18,
    "cycling_to_swimming": 1.41,
    "swimming_to_running": 0.83,
    "swimming_to_cycling": 0.71,
})

ADAPTATION_COMPATIBILITY: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "aerobic_base": ("aerobic_base", "endurance", "recovery"),
    "endurance": ("aerobic_base", "endurance", "aerobic_capacity"),
    "lactate_threshold": ("lactate_threshold", "tempo", "threshold"),
    "tempo": ("lactate_threshold", "tempo", "threshold"),
    "threshold": ("lactate_threshold", "tempo", "threshold"),
    "vo2_max": ("vo2_max", "vo2", "aerobic_power", "speed_endurance"),
    "vo2": ("vo2_max", "vo2", "aerobic_power"),
    "aerobic_power": ("vo2_max", "vo2", "aerobic_power"),
    "speed_endurance": ("vo2_max", "speed_endurance", "lactate_tolerance"),
    "neuromuscular_power": ("neuromuscular_power", "power", "speed"),
    "power": ("neuromuscular_power", "power", "anaerobic_capacity"),
    "speed": ("neuromuscular_power", "speed", "power"),
    "agility": ("agility", "neuromuscular_power", "coordination"),
    "strength_endurance": ("strength_endurance", "muscular_endurance"),
    "recovery": ("recovery", "aerobic_base", "active_recovery"),
})

# Minutes per zone: (min, max)
DURATION_LIMITS: Mapping[str, tuple[float, float]] = MappingProxyType({
    "Z1": (15, 300),
    "Z2": (15, 180),
    "Z3": (8, 90),
    "Z4": (3, 60),
    "Z5": (0.5, 20),
})

CONFIDENCE_FACTORS: Mapping[str, Any] = _freeze({
    "base_confidence": 0.85,
    "zone_penalty": {"Z1": 0.00, "Z2": 0.00, "Z3": 0.00, "Z4": -0.05, "Z5": -0.10},
    "duration_penalty": {"very_short": -0.10, "very_long": -0.05},
    "variance_penalty": -0.10,
})

VERY_SHORT_SESSION_MIN = 10
VERY_LONG_SESSION_MIN = 120

LOAD_TOLERANCE: Mapping[str, float] = MappingProxyType({
    "target": 0.10,
    "acceptable": 0.15,
    "maximum": 0.25,
})

_NON_ADAPTATION_CHARS = re.compile(r"[^a-z_]")


def normalize_adaptation(value: str | None) -> str:
    """Lowercase and strip everything outside [a-z_] ('VO2_max' -> 'vo_max')."""
    return _NON_ADAPTATION_CHARS.sub("", str(value or "").lower())


# Lookup keyed by normalized names so digits in tags like 'vo2_max' compare consistently
_NORMALIZED_COMPATIBILITY: Mapping[str, frozenset[str]] = MappingProxyType({
    normalize_adaptation(source): frozenset(normalize_adaptation(t) for t in targets)
    for source, targets in ADAPTATION_COMPATIBILITY.items()
})


def get_time_factor(from_modality: Modality | str, to_modality: Modality | str, zone: str | None) -> float:
    """Time conversion factor for a modality pair at a zone.

    Raises:
        InvalidConversionError: when the pair has no factor or the result is not a positive finite number.
    """
    if Modality.parse(from_modality) == Modality.parse(to_modality):
        return 1.0

    key = _key(from_modality, to_modality)
    base = TIME_FACTORS.get(key)
    if base is None:
        raise InvalidConversionError(f"No conversion factor for {key}")

    factor = base + ZONE_ADJUSTMENTS.get(key, {}).get(zone or "", 0.0)
    if not math.isfinite(factor) or factor <= 0:
        raise InvalidConversionError(f"Degenerate conversion factor {factor} for {key} at {zone}")
    return round(factor, 4)


def get_load_factor(from_modality: Modality | str, to_modality: Modality | str) -> float:
    if Modality.parse(from_modality) == Modality.parse(to_modality):
        return 1.0
    return LOAD_FACTORS.get(_key(from_modality, to_modality), 1.0)


def check_adaptation_compatibility(source: str | None, target: str | None) -> AdaptationCheck:
    """Classify how well a target adaptation serves the source adaptation.

    Exact match: +0.10 confidence. Listed as compatible for the source: +0.05.
    Anything else: incompatible, -0.15.
    """
    normalized_source = normalize_adaptation(source)
    normalized_target = normalize_adaptation(target)

    if normalized_source == normalized_target:
        return AdaptationCheck(compatible=True, match=MatchKind.EXACT, confidence_bonus=0.10)

    if normalized_target in _NORMALIZED_COMPATIBILITY.get(normalized_source, frozenset()):
        return AdaptationCheck(compatible=True, match=MatchKind.COMPATIBLE, confidence_bonus=0.05)

    return AdaptationCheck(compatible=False, match=MatchKind.INCOMPATIBLE, confidence_bonus=-0.15)


def validate_duration_limits(zone: str, duration_minutes: float) -> DurationCheck:
    """Check a duration against the zone's allowed range. Unknown zones pass with a warning."""
    limits = DURATION_LIMITS.get(zone)
    if limits is None:
        return DurationCheck(valid=True, warning="Unknown zone")

    low, high = limits
    if duration_minutes < low:
        return DurationCheck(
            valid=False,
            reason=f"Duration {duration_minutes:g}min below minimum {low:g}min for {zone}",
        )
    if duration_minutes > high:
        return DurationCheck(
            valid=False,
            reason=f"Duration {duration_minutes:g}min exceeds maximum {high:g}min for {zone}",
        )
    return DurationCheck(valid=True)


def calculate_confidence(
    *,
    source_adaptation: str | None,
    target_adaptation: str | None,
    zone: str | None,
    duration_minutes: float,
    load_variance: float,
) -> float:
    """Confidence (0-1) that a substitution reproduces the planned stimulus."""
    confidence = CONFIDENCE_FACTORS["base_confidence"]
    confidence += check_adaptation_compatibility(source_adaptation, target_adaptation).confidence_bonus
    confidence += CONFIDENCE_FACTORS["zone_penalty"].get(zone or "", 0.0)

    if duration_minutes < VERY_SHORT_SESSION_MIN:
        confidence += CONFIDENCE_FACTORS["duration_penalty"]["very_short"]
    elif duration_minutes > VERY_LONG_SESSION_MIN:
        confidence += CONFIDENCE_FACTORS["duration_penalty"]["very_long"]

    if load_variance > LOAD_TOLERANCE["acceptable"]:
        confidence += CONFIDENCE_FACTORS["variance_penalty"]

    return max(0.0, min(1.0, confidence))
