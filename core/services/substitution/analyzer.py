from __future__ import annotations

from typing import Iterable

from core.services.substitution.load import normalize_zone
from core.services.substitution.models import ZONES, Block, Modality, PlannedSession, SessionAnalysis


DEFAULT_PRIMARY_ZONE = "Z2"


def zone_minutes(structure: Iterable[Block]) -> dict[str, float]:
    """Accumulate zone minutes from main blocks only, keyed in Z1..Z5 order."""
    totals: dict[str, float] = {}
    for block in structure:
        if block.block_type != "main":
            continue
        zone = normalize_zone(block.intensity)
        if zone is None:
            continue
        totals[zone] = totals.get(zone, 0.0) + block.work_minutes
    return {zone: round(totals[zone], 4) for zone in ZONES if zone in totals}


def primary_zone_of(distribution: dict[str, float], default: str = DEFAULT_PRIMARY_ZONE) -> str:
    """Zone with the most minutes; ties go to the lower-numbered zone."""
    best_zone = None
    best_minutes = 0.0
    for zone in ZONES:
        minutes = distribution.get(zone, 0.0)
        if minutes > best_minutes:
            best_zone, best_minutes = zone, minutes
    return best_zone or default


def intensity_profile(zone: str) -> str:
    if zone in ("Z4", "Z5"):
        return "high"
    if zone == "Z3":
        return "moderate_high"
    return "moderate"


def analyze_session(session: PlannedSession) -> SessionAnalysis:
    """Normalize a planned session into zones, primary zone and intensity profile.

    Structure wins over a flat intensity. With neither, the primary zone
    defaults to Z2 and the zone distribution is empty. Never raises.
    """
    distribution: dict[str, float] = {}
    primary = DEFAULT_PRIMARY_ZONE
    flat_zone = normalize_zone(session.intensity)

    if session.structure:
        distribution = zone_minutes(session.structure)
        primary = primary_zone_of(distribution)
    elif flat_zone:
        primary = flat_zone
        distribution = {flat_zone: float(session.duration_minutes or 0.0)}

    return SessionAnalysis(
        modality=session.modality,
        duration_minutes=float(session.duration_minutes or 0.0),
        adaptation=session.adaptation or "general",
        zone_distribution=distribution,
        primary_zone=primary,
        intensity_profile=intensity_profile(primary),
        intensity=flat_zone,
        rpe=session.rpe,
    )


def analyze_structure(
    structure: tuple[Block, ...],
    *,
    modality: Modality,
    adaptation: str,
) -> SessionAnalysis:
    """Analysis of a bare block list, with duration taken from the blocks themselves."""
    distribution = zone_minutes(structure)
    primary = primary_zone_of(distribution)
    return SessionAnalysis(
        modality=modality,
        duration_minutes=round(sum(b.total_minutes for b in structure), 2),
        adaptation=adaptation,
        zone_distribution=distribution,
        primary_zone=primary,
        intensity_profile=intensity_profile(primary),
    )
