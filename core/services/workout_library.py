"""Built-in workout templates for cycling, swimming and running.

Used to seed the ``workout_templates`` table and as the in-memory catalog
when ``CATALOG_SOURCE=builtin``. Templates are fixed data; nothing here is
generated per request.
"""

from __future__ import annotations

from core.services.substitution.models import Block, Modality, WorkoutTemplate


def _steady(block_type: str, minutes: float, zone: str) -> Block:
    return Block(block_type=block_type, intensity=zone, duration_minutes=minutes)


def _reps(sets: int, work_s: float, rest_s: float, zone: str) -> Block:
    return Block(block_type="main", intensity=zone, sets=sets, work_duration_s=work_s, rest_duration_s=rest_s)


# ── Template library ─────────────────────────────────────────────────────

BUILTIN_TEMPLATES: dict[str, WorkoutTemplate] = {}


def _reg(t: WorkoutTemplate) -> WorkoutTemplate:
    BUILTIN_TEMPLATES[t.template_id] = t
    return t


# --- Cycling ---

_reg(WorkoutTemplate(
    template_id="cycle_endurance_60min_z2",
    name="60min Z2 Endurance",
    modality=Modality.CYCLING,
    category="endurance",
    adaptation="aerobic_base",
    estimated_load=100,
    time_required_minutes=60,
    equipment_required=frozenset({"bike"}),
    difficulty_level="beginner",
    structure=(_steady("warmup", 10, "Z1"), _steady("main", 40, "Z2"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="cycle_endurance_90min_z2",
    name="90min Z2 Endurance",
    modality=Modality.CYCLING,
    category="endurance",
    adaptation="aerobic_base",
    estimated_load=160,
    time_required_minutes=90,
    equipment_required=frozenset({"bike"}),
    difficulty_level="intermediate",
    structure=(_steady("warmup", 10, "Z1"), _steady("main", 70, "Z2"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="cycle_endurance_120min_z2",
    name="2hr Endurance Ride",
    modality=Modality.CYCLING,
    category="endurance",
    adaptation="endurance",
    estimated_load=220,
    time_required_minutes=120,
    equipment_required=frozenset({"bike"}),
    difficulty_level="intermediate",
    structure=(_steady("warmup", 15, "Z1"), _steady("main", 95, "Z2"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="cycle_recovery_spin_40min",
    name="40min Recovery Spin",
    modality=Modality.CYCLING,
    category="recovery",
    adaptation="recovery",
    estimated_load=40,
    time_required_minutes=40,
    equipment_required=frozenset({"bike"}),
    difficulty_level="beginner",
    structure=(_steady("main", 40, "Z1"),),
))

_reg(WorkoutTemplate(
    template_id="cycle_tempo_3x8min",
    name="3x8min Tempo Intervals",
    modality=Modality.CYCLING,
    category="tempo",
    adaptation="lactate_threshold",
    estimated_load=126,
    time_required_minutes=63,
    equipment_required=frozenset({"bike"}),
    structure=(_steady("warmup", 15, "Z1"), _reps(3, 480, 180, "Z3"), _steady("cooldown", 15, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="cycle_sweet_spot_2x20",
    name="2x20min Sweet Spot",
    modality=Modality.CYCLING,
    category="threshold",
    adaptation="threshold",
    estimated_load=190,
    time_required_minutes=75,
    equipment_required=frozenset({"bike", "power_meter"}),
    difficulty_level="advanced",
    structure=(_steady("warmup", 15, "Z1"), _reps(2, 1200, 300, "Z3"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="cycle_vo2_5x4min",
    name="5x4min VO2 Intervals",
    modality=Modality.CYCLING,
    category="intervals",
    adaptation="vo2_max",
    estimated_load=170,
    time_required_minutes=65,
    equipment_required=frozenset({"bike"}),
    difficulty_level="advanced",
    structure=(_steady("warmup", 15, "Z1"), _reps(5, 240, 240, "Z5"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="cycle_cadence_drills_45min",
    name="Cadence Builder",
    modality=Modality.CYCLING,
    category="technique",
    adaptation="endurance",
    estimated_load=70,
    time_required_minutes=45,
    equipment_required=frozenset({"bike"}),
    difficulty_level="beginner",
    structure=(_steady("warmup", 10, "Z1"), _reps(6, 180, 120, "Z2"), _steady("cooldown", 5, "Z1")),
))

# --- Swimming ---

_reg(WorkoutTemplate(
    template_id="swim_aerobic_3000m",
    name="3000m Aerobic Swim",
    modality=Modality.SWIMMING,
    category="aerobic",
    adaptation="aerobic_base",
    estimated_load=120,
    time_required_minutes=75,
    equipment_required=frozenset({"pool"}),
    structure=(_steady("warmup", 15, "Z1"), _steady("main", 45, "Z2"), _steady("cooldown", 15, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="swim_easy_continuous_30min",
    name="30min Easy Continuous Swim",
    modality=Modality.SWIMMING,
    category="aerobic",
    adaptation="endurance",
    estimated_load=50,
    time_required_minutes=35,
    equipment_required=frozenset({"pool"}),
    difficulty_level="beginner",
    structure=(_steady("warmup", 5, "Z1"), _steady("main", 25, "Z2"), _steady("cooldown", 5, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="swim_threshold_10x100",
    name="10x100m Threshold Set",
    modality=Modality.SWIMMING,
    category="threshold",
    adaptation="lactate_threshold",
    estimated_load=110,
    time_required_minutes=50,
    equipment_required=frozenset({"pool"}),
    structure=(_steady("warmup", 15, "Z1"), _reps(10, 100, 20, "Z3"), _steady("cooldown", 15, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="swim_vo2_8x50",
    name="8x50m VO2 Sprints",
    modality=Modality.SWIMMING,
    category="intervals",
    adaptation="vo2_max",
    estimated_load=60,
    time_required_minutes=40,
    equipment_required=frozenset({"pool"}),
    difficulty_level="advanced",
    structure=(_steady("warmup", 15, "Z1"), _reps(8, 45, 45, "Z5"), _steady("cooldown", 10, "Z1")),
))

# --- Running ---

_reg(WorkoutTemplate(
    template_id="run_easy_45min",
    name="45min Easy Run",
    modality=Modality.RUNNING,
    category="easy",
    adaptation="aerobic_base",
    estimated_load=80,
    time_required_minutes=45,
    difficulty_level="beginner",
    structure=(_steady("warmup", 5, "Z1"), _steady("main", 35, "Z2"), _steady("cooldown", 5, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="run_long_90min",
    name="90min Long Run",
    modality=Modality.RUNNING,
    category="long",
    adaptation="endurance",
    estimated_load=170,
    time_required_minutes=90,
    structure=(_steady("warmup", 10, "Z1"), _steady("main", 75, "Z2"), _steady("cooldown", 5, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="run_tempo_20min",
    name="20min Tempo Run",
    modality=Modality.RUNNING,
    category="tempo",
    adaptation="lactate_threshold",
    estimated_load=105,
    time_required_minutes=45,
    equipment_required=frozenset({"road"}),
    structure=(_steady("warmup", 15, "Z1"), _steady("main", 20, "Z3"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="run_track_5x1000",
    name="5x1000m Track Intervals",
    modality=Modality.RUNNING,
    category="intervals",
    adaptation="vo2_max",
    estimated_load=150,
    time_required_minutes=60,
    equipment_required=frozenset({"track"}),
    difficulty_level="advanced",
    structure=(_steady("warmup", 15, "Z1"), _reps(5, 240, 180, "Z4"), _steady("cooldown", 10, "Z1")),
))

_reg(WorkoutTemplate(
    template_id="run_hill_repeats_8x60s",
    name="8x60s Hill Repeats",
    modality=Modality.RUNNING,
    category="hills",
    adaptation="power",
    estimated_load=110,
    time_required_minutes=50,
    equipment_required=frozenset({"hills"}),
    difficulty_level="intermediate",
    structure=(_steady("warmup", 15, "Z1"), _reps(8, 60, 120, "Z5"), _steady("cooldown", 10, "Z1")),
))


def templates_for(modality: Modality | str) -> list[WorkoutTemplate]:
    """Library templates for one modality, in registration order."""
    modality = Modality.parse(modality)
    return [t for t in BUILTIN_TEMPLATES.values() if t.modality == modality]
