"""Tests for candidate discovery and filtering."""

from __future__ import annotations

import pytest

from core.errors import NoSuitableTemplatesError
from core.services.substitution.candidates import equipment_available, filter_candidates, find_candidates
from core.services.substitution.catalog import StaticWorkoutCatalog
from core.services.substitution.models import Block, MatchKind, Modality, UserContext, WorkoutTemplate


def _template(template_id, adaptation="aerobic_base", minutes=60, equipment=(), modality=Modality.CYCLING):
    return WorkoutTemplate(
        template_id=template_id,
        name=template_id,
        modality=modality,
        category="endurance",
        adaptation=adaptation,
        estimated_load=100,
        time_required_minutes=minutes,
        equipment_required=frozenset(equipment),
        structure=(Block(block_type="main", intensity="Z2", duration_minutes=minutes),),
    )


def test_equipment_rules():
    bike = _template("bike", equipment=("bike",))
    bare = _template("bare")
    assert equipment_available(bare, frozenset()) is True
    assert equipment_available(bike, None) is True
    assert equipment_available(bike, frozenset()) is False
    assert equipment_available(bike, frozenset({"bike", "trainer"})) is True


def test_filters_apply_in_order_and_keep_catalog_order():
    templates = [
        _template("exact"),
        _template("compatible", adaptation="endurance"),
        _template("wrong_focus", adaptation="lactate_threshold"),
        _template("needs_pool", equipment=("pool",)),
        _template("too_long", minutes=150),
    ]
    ctx = UserContext(equipment=frozenset({"bike"}), available_time=90)
    kept = filter_candidates(templates, "aerobic_base", ctx)
    assert [c.template.template_id for c in kept] == ["exact", "compatible"]
    assert kept[0].adaptation_match == MatchKind.EXACT
    assert kept[1].adaptation_match == MatchKind.COMPATIBLE


def test_available_time_defaults_to_180():
    templates = [_template("long", minutes=170), _template("too_long", minutes=200)]
    kept = filter_candidates(templates, "aerobic_base", UserContext())
    assert [c.template.template_id for c in kept] == ["long"]


def test_zero_available_time_is_respected():
    kept = filter_candidates([_template("any", minutes=30)], "aerobic_base", UserContext(available_time=0))
    assert kept == []


@pytest.mark.asyncio
async def test_find_candidates_empty_catalog_raises():
    catalog = StaticWorkoutCatalog([])
    with pytest.raises(NoSuitableTemplatesError) as exc:
        await find_candidates(catalog, Modality.SWIMMING, "aerobic_base", UserContext())
    assert "No suitable swimming workouts found for aerobic_base" in str(exc.value)


@pytest.mark.asyncio
async def test_find_candidates_reads_target_modality_only():
    catalog = StaticWorkoutCatalog([_template("ride"), _template("run", modality=Modality.RUNNING)])
    kept = await find_candidates(catalog, Modality.CYCLING, "aerobic_base", UserContext())
    assert [c.template.template_id for c in kept] == ["ride"]
