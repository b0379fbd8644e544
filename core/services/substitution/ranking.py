"""Scoring, ordering and plain-language explanation of scaled candidates."""

from __future__ import annotations

from typing import Any, Iterable

from core.services.substitution.models import MatchKind, ScaledCandidate, SessionAnalysis

ADAPTATION_BONUS = {MatchKind.EXACT: 20.0, MatchKind.COMPATIBLE: 10.0}
EQUIPMENT_BONUS = 5.0
DURATION_BONUS = 5.0
REASONABLE_DURATION_MIN = (15, 120)
MAX_RESULTS = 3


def quality_score(candidate: ScaledCandidate) -> float:
    """Composite ranking score.

    Not capped at 100: a perfect exact-match candidate scores 150. Downstream
    consumers should treat it as a relative ordering value.
    """
    score = 50.0
    score += 40.0 * (1.0 - min(candidate.load_variance, 0.25))
    score += 30.0 * candidate.confidence_score
    score += ADAPTATION_BONUS.get(candidate.adaptation_match, 0.0)
    if not candidate.equipment_required:
        score += EQUIPMENT_BONUS
    low, high = REASONABLE_DURATION_MIN
    if low <= candidate.scaled_duration <= high:
        score += DURATION_BONUS
    return round(score, 1)


def rank_candidates(candidates: Iterable[ScaledCandidate], limit: int = MAX_RESULTS) -> list[ScaledCandidate]:
    """Sort by quality score, best first, and keep the top ``limit``.

    The sort is stable, so equal scores keep catalog order.
    """
    ordered = sorted(candidates, key=lambda c: c.quality_score, reverse=True)
    return ordered[:limit]


def _duration_sentence(original_minutes: float, scaled_minutes: float) -> str:
    if original_minutes <= 0:
        return "Similar duration to original workout"
    percent = round((scaled_minutes - original_minutes) / original_minutes * 100)
    if abs(percent) >= 10:
        direction = "longer" if percent > 0 else "shorter"
        return f"{abs(percent)}% {direction} duration for equivalent training stress"
    return "Similar duration to original workout"


def _load_sentence(variance_percent: float) -> str:
    diff = abs(variance_percent)
    if diff <= 5:
        tier = "Equivalent"
    elif diff <= 10:
        tier = "Very similar"
    else:
        tier = "Comparable"
    return f"{tier} training load ({diff:g}% difference)"


def _confidence_sentence(confidence: float) -> str:
    if confidence >= 0.9:
        return "High confidence substitution"
    if confidence >= 0.75:
        return "Good substitution match"
    return "Reasonable alternative option"


def generate_reasoning(original: SessionAnalysis, candidate: ScaledCandidate) -> str:
    reasons = [
        _duration_sentence(original.duration_minutes, candidate.scaled_duration),
        _load_sentence(candidate.load_variance_percentage),
    ]
    if candidate.adaptation_match == MatchKind.EXACT:
        reasons.append("Same training adaptation")
    else:
        reasons.append(f"Compatible training focus ({candidate.adaptation})")
    if candidate.equipment_required:
        reasons.append(f"Requires: {', '.join(sorted(candidate.equipment_required))}")
    else:
        reasons.append("Minimal equipment required")
    reasons.append(_confidence_sentence(candidate.confidence_score))
    return ". ".join(reasons) + "."


def substitution_stats(candidates: list[ScaledCandidate]) -> dict[str, Any]:
    """Summary numbers for a result set; ``{"count": 0}`` when empty."""
    if not candidates:
        return {"count": 0}
    variances = [c.load_variance_percentage for c in candidates]
    confidences = [c.confidence_score for c in candidates]
    return {
        "count": len(candidates),
        "avg_load_variance": round(sum(variances) / len(variances), 1),
        "avg_confidence": round(sum(confidences) / len(confidences), 2),
        "best_load_match": min(variances),
        "highest_confidence": max(confidences),
        "within_10_percent": sum(1 for v in variances if v <= 10),
    }
