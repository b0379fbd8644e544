"""Training load calculation for substitution matching.

Turns a session description into one comparable load scalar. Methods are tried
in a fixed priority order and the first applicable one wins:

1. RPE x duration (session-RPE, Foster 1998)          confidence 0.75
2. Zone-weighted minutes (Z1..Z5 -> 1, 2, 4, 7, 10)    confidence 0.85
3. MET-minutes for the modality and flat zone x 0.8   confidence 0.65

RPE is checked before zone data even though zone data is usually the richer
signal. The order is deliberate and must not be changed silently.
"""

from __future__ import annotations

import math
import re
from typing import Any

from core.errors import InsufficientDataError
from core.services.substitution.models import LoadMethod, Modality, SessionAnalysis, TargetLoad


ZONE_LOAD_MULTIPLIERS: dict[str, float] = {
    "Z1": 1.0,
    "Z2": 2.0,
    "Z3": 4.0,
    "Z4": 7.0,
    "Z5": 10.0,
}

# MET values by modality and zone (Ainsworth compendium, rounded)
MET_VALUES: dict[Modality, dict[str, float]] = {
    Modality.RUNNING: {"Z1": 8, "Z2": 10, "Z3": 12, "Z4": 15, "Z5": 18},
    Modality.CYCLING: {"Z1": 6, "Z2": 8, "Z3": 10, "Z4": 13, "Z5": 16},
    Modality.SWIMMING: {"Z1": 10, "Z2": 12, "Z3": 14, "Z4": 17, "Z5": 20},
}

MET_LOAD_CONVERSION = 0.8

METHOD_CONFIDENCE: dict[LoadMethod, float] = {
    LoadMethod.RPE_DURATION: 0.75,
    LoadMethod.ZONE_RPE: 0.85,
    LoadMethod.MET_MINUTES: 0.65,
}

_ZONE_TOKEN = re.compile(r"Z[1-5]")


def normalize_zone(value: Any) -> str | None:
    """Return the first Z1-Z5 token in a zone label ('z3-z4' -> 'Z3'), or None."""
    if not value:
        return None
    match = _ZONE_TOKEN.search(str(value).upper())
    return match.group(0) if match else None


def _positive(value: Any) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def rpe_category(rpe: float) -> str:
    if rpe <= 2:
        return "Very Easy"
    if rpe <= 4:
        return "Easy"
    if rpe <= 6:
        return "Moderate"
    if rpe <= 8:
        return "Hard"
    return "Very Hard"


def met_category(met_value: float) -> str:
    if met_value < 6:
        return "Light Intensity"
    if met_value < 12:
        return "Moderate Intensity"
    return "Vigorous Intensity"


def _rpe_load(rpe: float, duration: float) -> TargetLoad:
    clamped = max(1.0, min(10.0, rpe))
    return TargetLoad(
        total_load=round(clamped * duration, 2),
        method_used=LoadMethod.RPE_DURATION,
        confidence=METHOD_CONFIDENCE[LoadMethod.RPE_DURATION],
        breakdown={
            "rpe": clamped,
            "duration_minutes": duration,
            "intensity_category": rpe_category(clamped),
        },
    )


def _zone_load(zone_distribution: dict[str, float] | Any, duration: float) -> TargetLoad | None:
    total = 0.0
    breakdown: dict[str, Any] = {}
    for zone_key, minutes in (zone_distribution or {}).items():
        minutes_value = _positive(minutes)
        zone = normalize_zone(zone_key)
        if minutes_value is None or zone is None:
            continue
        multiplier = ZONE_LOAD_MULTIPLIERS[zone]
        contribution = minutes_value * multiplier
        total += contribution
        previous = breakdown.get(zone, {"minutes": 0.0, "load_contribution": 0.0})
        breakdown[zone] = {
            "minutes": round(previous["minutes"] + minutes_value, 2),
            "multiplier": multiplier,
            "load_contribution": round(previous["load_contribution"] + contribution, 2),
        }
    if total <= 0:
        return None
    breakdown["avg_intensity"] = round(total / duration, 3)
    return TargetLoad(
        total_load=round(total, 2),
        method_used=LoadMethod.ZONE_RPE,
        confidence=METHOD_CONFIDENCE[LoadMethod.ZONE_RPE],
        breakdown=breakdown,
    )


def _met_load(modality: Modality, zone: str, duration: float) -> TargetLoad | None:
    met_value = MET_VALUES.get(modality, {}).get(zone)
    if not met_value:
        return None
    met_minutes = met_value * duration
    return TargetLoad(
        total_load=round(met_minutes * MET_LOAD_CONVERSION, 2),
        method_used=LoadMethod.MET_MINUTES,
        confidence=METHOD_CONFIDENCE[LoadMethod.MET_MINUTES],
        breakdown={
            "modality": modality.value,
            "intensity": zone,
            "duration_minutes": duration,
            "met_value": met_value,
            "met_minutes": round(met_minutes, 2),
            "conversion_factor": MET_LOAD_CONVERSION,
            "met_category": met_category(met_value),
        },
    )


def compute_load(session: SessionAnalysis) -> TargetLoad:
    """Compute the training load of a session.

    Raises:
        InsufficientDataError: when no method has the fields it needs.
    """
    duration = _positive(session.duration_minutes)
    if duration is not None:
        rpe = _positive(session.rpe)
        if rpe is not None:
            return _rpe_load(rpe, duration)

        if session.zone_distribution:
            zone_result = _zone_load(session.zone_distribution, duration)
            if zone_result is not None:
                return zone_result

        zone = normalize_zone(session.intensity)
        if session.modality is not None and zone is not None:
            met_result = _met_load(session.modality, zone, duration)
            if met_result is not None:
                return met_result

    raise InsufficientDataError(
        "Insufficient data for load calculation: need duration with RPE, zone distribution, or modality and intensity"
    )


def validate_session(session: SessionAnalysis) -> dict[str, Any]:
    """Sanity-check a session before load calculation.

    Returns a dict with keys: valid, errors, warnings. Only a missing or
    non-positive duration is an error; everything else is advisory.
    """
    errors: list[str] = []
    warnings: list[str] = []

    duration = _positive(session.duration_minutes)
    if duration is None:
        errors.append("Valid duration_minutes is required")

    if session.rpe is not None and not (1 <= session.rpe <= 10):
        warnings.append("RPE should be between 1-10")

    if session.zone_distribution and duration is not None:
        zone_total = sum(float(m) for m in session.zone_distribution.values())
        if abs(zone_total - duration) > 5:
            warnings.append("Zone distribution minutes don't match total duration")

    return {"valid": not errors, "errors": errors, "warnings": warnings}
