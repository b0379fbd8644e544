"""Tests for cross-modality equivalence rules."""

from __future__ import annotations

import pytest

from core.errors import InvalidConversionError, ValidationError
from core.services.substitution.equivalence import (
    LOAD_TOLERANCE,
    TIME_FACTORS,
    calculate_confidence,
    check_adaptation_compatibility,
    get_load_factor,
    get_time_factor,
    normalize_adaptation,
    validate_duration_limits,
)
from core.services.substitution.models import ZONES, MatchKind, Modality


@pytest.mark.parametrize("modality", list(Modality))
def test_same_modality_factor_is_one(modality):
    for zone in ZONES:
        assert get_time_factor(modality, modality, zone) == 1.0
    assert get_load_factor(modality, modality) == 1.0


def test_time_factor_adds_zone_adjustment():
    assert get_time_factor("running", "cycling", "Z2") == 1.33
    assert get_time_factor("running", "cycling", "Z5") == 1.2
    assert get_time_factor(Modality.SWIMMING, Modality.CYCLING, "Z1") == 1.71


def test_time_factor_unknown_zone_uses_base():
    assert get_time_factor("cycling", "running", None) == 0.77


def test_time_factor_missing_pair_raises(monkeypatch):
    import core.services.substitution.equivalence as eq

    monkeypatch.setattr(eq, "TIME_FACTORS", {k: v for k, v in TIME_FACTORS.items() if k != "running_to_cycling"})
    with pytest.raises(InvalidConversionError):
        eq.get_time_factor("running", "cycling", "Z2")


def test_invalid_modality_raises_validation_error():
    with pytest.raises(ValidationError):
        get_time_factor("rowing", "cycling", "Z2")


def test_load_factor_lookup():
    assert get_load_factor("running", "swimming") == 1.2


@pytest.mark.parametrize("adaptation", ["aerobic_base", "VO2_max", "tempo", "anything"])
def test_exact_adaptation_match(adaptation):
    check = check_adaptation_compatibility(adaptation, adaptation)
    assert check.compatible is True
    assert check.match == MatchKind.EXACT
    assert check.confidence_bonus == 0.10


def test_compatible_and_incompatible_adaptations():
    compatible = check_adaptation_compatibility("aerobic_base", "endurance")
    assert compatible.match == MatchKind.COMPATIBLE
    assert compatible.confidence_bonus == 0.05

    vo2 = check_adaptation_compatibility("vo2_max", "aerobic_power")
    assert vo2.compatible is True

    incompatible = check_adaptation_compatibility("aerobic_base", "lactate_threshold")
    assert incompatible.compatible is False
    assert incompatible.match == MatchKind.INCOMPATIBLE
    assert incompatible.confidence_bonus == -0.15


def test_compatibility_is_not_substring_based():
    assert check_adaptation_compatibility("power", "neuromuscular_power_endurance").compatible is False


def test_normalize_adaptation_strips_digits_and_spaces():
    assert normalize_adaptation("VO2 Max") == "vomax"
    assert normalize_adaptation(None) == ""


def test_duration_limits():
    too_long = validate_duration_limits("Z5", 30)
    assert too_long.valid is False
    assert "maximum 20min" in too_long.reason

    too_short = validate_duration_limits("Z2", 10)
    assert too_short.valid is False
    assert "below minimum" in too_short.reason

    assert validate_duration_limits("Z1", 120).valid is True
    unknown = validate_duration_limits("Z9", 10)
    assert unknown.valid is True
    assert unknown.warning == "Unknown zone"


def test_confidence_components():
    base = dict(source_adaptation="aerobic_base", target_adaptation="aerobic_base", zone="Z2")
    assert calculate_confidence(**base, duration_minutes=60, load_variance=0.0) == pytest.approx(0.95)
    assert calculate_confidence(**base, duration_minutes=5, load_variance=0.0) == pytest.approx(0.85)
    assert calculate_confidence(**base, duration_minutes=150, load_variance=0.0) == pytest.approx(0.90)
    assert calculate_confidence(**base, duration_minutes=60, load_variance=0.2) == pytest.approx(0.85)

    hard = calculate_confidence(
        source_adaptation="vo2_max", target_adaptation="tempo", zone="Z5", duration_minutes=5, load_variance=0.5
    )
    assert hard == pytest.approx(0.85 - 0.15 - 0.10 - 0.10 - 0.10)


def test_confidence_is_clamped():
    value = calculate_confidence(
        source_adaptation="a", target_adaptation="b", zone="Z5", duration_minutes=1, load_variance=10
    )
    assert 0.0 <= value <= 1.0


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        TIME_FACTORS["running_to_cycling"] = 2.0
    assert LOAD_TOLERANCE["acceptable"] == 0.15
