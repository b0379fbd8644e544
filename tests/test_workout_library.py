"""Tests for the built-in workout template library."""

from __future__ import annotations

from core.services.substitution.analyzer import analyze_structure
from core.services.substitution.equivalence import ADAPTATION_COMPATIBILITY
from core.services.substitution.models import Modality
from core.services.workout_library import BUILTIN_TEMPLATES, templates_for


def test_every_modality_has_templates():
    for modality in Modality:
        assert templates_for(modality), modality


def test_template_ids_match_registry_keys():
    for key, template in BUILTIN_TEMPLATES.items():
        assert key == template.template_id


def test_time_required_covers_structure():
    for template in BUILTIN_TEMPLATES.values():
        analysis = analyze_structure(template.structure, modality=template.modality, adaptation=template.adaptation)
        assert analysis.duration_minutes <= template.time_required_minutes, template.template_id
        assert analysis.zone_distribution, template.template_id


def test_adaptations_are_known():
    for template in BUILTIN_TEMPLATES.values():
        assert template.adaptation in ADAPTATION_COMPATIBILITY, template.template_id
