"""Candidate discovery: filter the catalog down to templates worth scaling."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.errors import NoSuitableTemplatesError
from core.services.substitution.catalog import WorkoutCatalog
from core.services.substitution.equivalence import check_adaptation_compatibility
from core.services.substitution.models import MatchKind, Modality, UserContext, WorkoutTemplate

logger = logging.getLogger(__name__)

DEFAULT_AVAILABLE_TIME_MIN = 180.0


@dataclass(frozen=True)
class Candidate:
    """A catalog template that survived filtering, annotated with its adaptation match."""
    template: WorkoutTemplate
    adaptation_match: MatchKind
    adaptation_confidence: float


def equipment_available(template: WorkoutTemplate, user_equipment: frozenset[str] | None) -> bool:
    """True when the template needs nothing or everything it needs is available.

    ``None`` means the caller did not constrain equipment at all.
    """
    if not template.equipment_required or user_equipment is None:
        return True
    return template.equipment_required <= user_equipment


def filter_candidates(
    templates: list[WorkoutTemplate],
    source_adaptation: str,
    user_context: UserContext,
    *,
    default_available_time: float = DEFAULT_AVAILABLE_TIME_MIN,
) -> list[Candidate]:
    """Apply adaptation, equipment and time filters in that order, keeping catalog order."""
    compatible: list[Candidate] = []
    for template in templates:
        check = check_adaptation_compatibility(source_adaptation, template.adaptation)
        if check.compatible:
            compatible.append(Candidate(template, check.match, check.confidence_bonus))

    equipped = [c for c in compatible if equipment_available(c.template, user_context.equipment)]

    max_time = user_context.available_time if user_context.available_time is not None else default_available_time
    timed = [c for c in equipped if c.template.time_required_minutes <= max_time]

    logger.debug(
        "candidate_filter",
        extra={
            "catalog": len(templates),
            "adaptation_ok": len(compatible),
            "equipment_ok": len(equipped),
            "time_ok": len(timed),
        },
    )
    return timed


async def find_candidates(
    catalog: WorkoutCatalog,
    target_modality: Modality,
    source_adaptation: str,
    user_context: UserContext,
    *,
    default_available_time: float = DEFAULT_AVAILABLE_TIME_MIN,
) -> list[Candidate]:
    """Fetch templates for the target modality and filter them.

    Raises:
        NoSuitableTemplatesError: when nothing survives (including an empty catalog).
    """
    templates = await catalog.get_workouts_by_modality(target_modality)
    candidates = filter_candidates(
        list(templates or []),
        source_adaptation,
        user_context,
        default_available_time=default_available_time,
    )
    if not candidates:
        raise NoSuitableTemplatesError(
            f"No suitable {target_modality.value} workouts found for {source_adaptation}"
        )
    return candidates
