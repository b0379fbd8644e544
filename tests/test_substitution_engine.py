"""End-to-end tests for the substitution pipeline with stub collaborators."""

from __future__ import annotations

import logging

import pytest

from core.errors import InsufficientDataError, NoSuitableTemplatesError, SafetyBlockedError, ValidationError
from core.services.substitution.catalog import StaticWorkoutCatalog
from core.services.substitution.engine import SubstitutionEngine
from core.services.substitution.guardrails import GuardrailManager
from core.services.substitution.models import (
    Block,
    GuardrailDecision,
    Modality,
    PlannedSession,
    UserContext,
    WorkoutTemplate,
)
from core.services.workout_library import BUILTIN_TEMPLATES


def _steady(block_type, minutes, zone):
    return Block(block_type=block_type, intensity=zone, duration_minutes=minutes)


def _ride(template_id, main_minutes=40, adaptation="aerobic_base", equipment=("bike",)):
    return WorkoutTemplate(
        template_id=template_id,
        name=template_id.replace("_", " ").title(),
        modality=Modality.CYCLING,
        category="endurance",
        adaptation=adaptation,
        estimated_load=main_minutes * 2,
        time_required_minutes=main_minutes + 20,
        equipment_required=frozenset(equipment),
        structure=(_steady("warmup", 10, "Z1"), _steady("main", main_minutes, "Z2"), _steady("cooldown", 10, "Z1")),
    )


EASY_RUN = PlannedSession(modality=Modality.RUNNING, duration_minutes=50, intensity="Z2", adaptation="aerobic_base")


class WeeklyCapManager(GuardrailManager):
    """Blocks a fixed set of templates as if they broke a weekly load cap."""

    def __init__(self, blocked_ids):
        self.blocked_ids = set(blocked_ids)

    async def validate_workout(self, workout, user_profile, recent_sessions, readiness_data):
        if workout["template_id"] in self.blocked_ids:
            return GuardrailDecision(is_allowed=False, blocks=("Weekly load cap exceeded",))
        return GuardrailDecision(is_allowed=True)


class AllowAll(GuardrailManager):
    async def validate_workout(self, workout, user_profile, recent_sessions, readiness_data):
        return GuardrailDecision(is_allowed=True)


@pytest.mark.asyncio
async def test_running_to_cycling_scenario():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("z2_60")]), AllowAll())
    results = await engine.suggest_substitutions(EASY_RUN, "cycling", UserContext(equipment=frozenset({"bike"})))

    assert len(results) == 1
    best = results[0]
    assert 60 <= best.scaled_duration <= 75
    assert best.load_variance_percentage <= 10
    assert best.confidence_score > 0.7
    assert best.guardrail_status == "passed"
    assert best.quality_score > 0
    assert best.reasoning.endswith(".")
    assert "Same training adaptation" in best.reasoning


@pytest.mark.asyncio
async def test_guardrail_rejections_are_filtered():
    catalog = StaticWorkoutCatalog([_ride("over_cap"), _ride("within_cap", main_minutes=45)])
    engine = SubstitutionEngine(catalog, WeeklyCapManager({"over_cap"}))
    results = await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING, UserContext())
    assert [r.template_id for r in results] == ["within_cap"]


@pytest.mark.asyncio
async def test_all_candidates_blocked_raises():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("a"), _ride("b")]), WeeklyCapManager({"a", "b"}))
    with pytest.raises(SafetyBlockedError, match="No substitutions pass safety guardrails"):
        await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING, UserContext())


@pytest.mark.asyncio
async def test_empty_catalog_raises_no_suitable():
    engine = SubstitutionEngine(StaticWorkoutCatalog([]))
    with pytest.raises(NoSuitableTemplatesError, match="No suitable swimming workouts found"):
        await engine.suggest_substitutions(EASY_RUN, Modality.SWIMMING, UserContext())


@pytest.mark.asyncio
async def test_results_capped_and_sorted():
    catalog = StaticWorkoutCatalog(
        [
            _ride("r30", 30),
            _ride("r40", 40, equipment=()),
            _ride("r50", 50),
            _ride("endurance", 40, adaptation="endurance"),
            _ride("recovery", 35, adaptation="recovery"),
        ]
    )
    engine = SubstitutionEngine(catalog, AllowAll())
    results = await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING, UserContext())
    assert len(results) == 3
    scores = [r.quality_score for r in results]
    assert scores == sorted(scores, reverse=True)
    assert results[0].template_id == "r40"
    for r in results:
        assert 0.0 <= r.confidence_score <= 1.0
        assert r.load_variance >= 0


@pytest.mark.asyncio
async def test_identical_calls_give_identical_output():
    engine = SubstitutionEngine(StaticWorkoutCatalog(BUILTIN_TEMPLATES.values()), AllowAll())
    ctx = UserContext(equipment=frozenset({"bike", "power_meter"}), available_time=120)
    first = await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING, ctx)
    second = await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING, ctx)
    assert first == second
    assert len(first) <= 3


@pytest.mark.asyncio
async def test_missing_guardrail_manager_fails_open_with_warning():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("z2_60")]))
    results = await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING)
    assert results[0].guardrail_status == "unverified"
    assert "Guardrail check unavailable" in results[0].warnings


@pytest.mark.asyncio
async def test_fail_closed_blocks_everything_without_manager():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("z2_60")]), fail_open_on_guardrail_error=False)
    with pytest.raises(SafetyBlockedError):
        await engine.suggest_substitutions(EASY_RUN, Modality.CYCLING)


@pytest.mark.asyncio
async def test_invalid_target_modality_raises():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("z2_60")]))
    with pytest.raises(ValidationError):
        await engine.suggest_substitutions(EASY_RUN, "rowing")


@pytest.mark.asyncio
async def test_failures_are_logged_and_reraised(caplog):
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("z2_60")]))
    planned = PlannedSession(modality=Modality.RUNNING, duration_minutes=0)
    with caplog.at_level(logging.ERROR, logger="core.services.substitution.engine"):
        with pytest.raises(InsufficientDataError):
            await engine.suggest_substitutions(planned, Modality.CYCLING)
    assert any(r.getMessage() == "substitution_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_plan_substitutions_exposes_target_load():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_ride("z2_60")]), AllowAll())
    result = await engine.plan_substitutions(EASY_RUN, Modality.CYCLING, UserContext())
    assert result.target_load.total_load == 100.0
    assert result.target_load.method_used.value == "Zone_RPE"
    assert result.analysis.primary_zone == "Z2"
    assert result.target_modality == Modality.CYCLING


def _empty_ride(template_id):
    return WorkoutTemplate(
        template_id=template_id,
        name="Unstructured Ride",
        modality=Modality.CYCLING,
        category="endurance",
        adaptation="aerobic_base",
        estimated_load=0,
        time_required_minutes=60,
        equipment_required=frozenset({"bike"}),
    )


@pytest.mark.asyncio
async def test_template_without_structure_is_skipped():
    engine = SubstitutionEngine(StaticWorkoutCatalog([_empty_ride("empty"), _ride("good")]), AllowAll())
    result = await engine.suggest_substitutions(EASY_RUN, "cycling", UserContext(equipment=frozenset({"bike"})))
    assert [c.template_id for c in result] == ["good"]


@pytest.mark.asyncio
async def test_only_unusable_templates_raises_no_suitable(caplog):
    engine = SubstitutionEngine(StaticWorkoutCatalog([_empty_ride("empty")]), AllowAll())
    with caplog.at_level(logging.WARNING, logger="core.services.substitution.engine"):
        with pytest.raises(NoSuitableTemplatesError):
            await engine.suggest_substitutions(EASY_RUN, "cycling")
    assert any(r.getMessage() == "candidate_skipped" and r.template_id == "empty" for r in caplog.records)
