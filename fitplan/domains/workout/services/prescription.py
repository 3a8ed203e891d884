from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from fitplan.domains.workout.contract import BODYWEIGHT_EQUIPMENT, canonicalize_equipment_code
from fitplan.domains.workout.schemas import (
    ExerciseRecord,
    FitnessLevel,
    Gender,
    Intensity,
    Objective,
    Phase,
    PlanStrategy,
    Prescription,
    ProgressiveOverloadBreakdown,
    UserProfile,
    WeeklyProgression,
)
from fitplan.domains.workout.services.common import clamp, norm, round_half_up, round_int


BASE_REPS: Dict[Objective, int] = {
    Objective.GAIN_MUSCLE: 10,
    Objective.LOSE_FAT: 12,
    Objective.ENDURANCE: 20,
    Objective.MAINTAIN: 12,
}
BASE_SETS: Dict[FitnessLevel, int] = {
    FitnessLevel.BEGINNER: 2,
    FitnessLevel.INTERMEDIATE: 3,
    FitnessLevel.ADVANCED: 4,
}
BASE_DURATION_SECONDS: Dict[FitnessLevel, int] = {
    FitnessLevel.BEGINNER: 30,
    FitnessLevel.INTERMEDIATE: 45,
    FitnessLevel.ADVANCED: 60,
}
CARDIO_DURATION_FACTOR = 8

LEVEL_WEIGHT_MULTIPLIER: Dict[FitnessLevel, float] = {
    FitnessLevel.BEGINNER: 0.4,
    FitnessLevel.INTERMEDIATE: 0.6,
    FitnessLevel.ADVANCED: 0.8,
}
BODY_PART_PERCENTAGE: Dict[str, float] = {
    "chest": 0.6,
    "upper_legs": 1.0,
    "legs": 1.0,
    "back": 0.7,
    "shoulders": 0.3,
    "upper_arms": 0.25,
    "arms": 0.25,
}
DEFAULT_BODY_PART_PERCENTAGE = 0.4
WEIGHT_STEP_KG = 2.5
MIN_WEIGHT_KG = 2.5

OBJECTIVE_REST_FACTOR: Dict[Objective, float] = {
    Objective.LOSE_FAT: 0.7,
    Objective.ENDURANCE: 0.5,
}
LEVEL_REST_FACTOR: Dict[FitnessLevel, float] = {
    FitnessLevel.BEGINNER: 1.2,
    FitnessLevel.ADVANCED: 0.9,
}

BASE_RPE: Dict[FitnessLevel, float] = {
    FitnessLevel.BEGINNER: 6.0,
    FitnessLevel.INTERMEDIATE: 7.0,
    FitnessLevel.ADVANCED: 8.0,
}
PHASE_RPE_SHIFT: Dict[Phase, float] = {
    Phase.foundation: -0.5,
    Phase.build: 0.0,
    Phase.peak: 1.0,
    Phase.deload: -1.5,
}
OBJECTIVE_RPE_SHIFT: Dict[Objective, float] = {
    Objective.ENDURANCE: -0.5,
    Objective.GAIN_MUSCLE: 0.5,
}

SETS_BOUNDS = (1, 8)
REPS_BOUNDS = (5, 30)
REST_BOUNDS = (30, 300)
RPE_BOUNDS = (5.0, 10.0)
SECONDS_PER_REP = 3

FORM_CUES = (
    ("plank", "Maintain straight line from head to heels"),
    ("squat", "Keep chest up and knees tracking over toes"),
    ("deadlift", "Hinge at hips, keep bar close to body"),
)


def _name(ex: ExerciseRecord) -> str:
    return ex.name.lower()


def _is_bodyweight(ex: ExerciseRecord) -> bool:
    return canonicalize_equipment_code(ex.equipment) == BODYWEIGHT_EQUIPMENT


def is_duration_based(exercise: ExerciseRecord) -> bool:
    name = _name(exercise)
    return "plank" in name or "hold" in name or norm(exercise.category) == "cardio"


def base_reps(exercise: ExerciseRecord, level: FitnessLevel, objective: Objective) -> int:
    reps = BASE_REPS.get(objective, 12)
    if level == FitnessLevel.BEGINNER:
        reps += 2
    elif level == FitnessLevel.ADVANCED and objective == Objective.GAIN_MUSCLE:
        reps -= 2

    if norm(exercise.category) == "strength" and "deadlift" in _name(exercise):
        reps = max(5, reps - 5)
    if norm(exercise.body_part) == "waist":
        reps += 5
    return clamp(reps, *REPS_BOUNDS)


def base_sets(exercise: ExerciseRecord, level: FitnessLevel, objective: Objective) -> int:
    sets = BASE_SETS.get(level, 3)
    if objective in (Objective.ENDURANCE, Objective.GAIN_MUSCLE):
        sets = max(3, sets)
    name = _name(exercise)
    if "compound" in name or any(m in name for m in ("squat", "deadlift", "bench", "row")):
        sets = max(3, sets)
    return clamp(sets, 1, 6)


def base_duration_seconds(exercise: ExerciseRecord, level: FitnessLevel) -> int:
    duration = BASE_DURATION_SECONDS.get(level, 45)
    if "plank" in _name(exercise):
        return duration
    if norm(exercise.category) == "cardio":
        return duration * CARDIO_DURATION_FACTOR
    return duration


def base_weight_kg(exercise: ExerciseRecord, profile: UserProfile, objective: Objective) -> float:
    if _is_bodyweight(exercise):
        return 0.0

    pct = BODY_PART_PERCENTAGE.get(norm(exercise.body_part), DEFAULT_BODY_PART_PERCENTAGE)
    if profile.gender == Gender.FEMALE:
        pct *= 0.75
    if objective == Objective.ENDURANCE:
        pct *= 0.7
    elif objective == Objective.GAIN_MUSCLE:
        pct *= 1.1

    suggested = profile.weight_kg * pct * LEVEL_WEIGHT_MULTIPLIER.get(profile.fitness_level, 0.5)
    return max(MIN_WEIGHT_KG, round_half_up(suggested / WEIGHT_STEP_KG) * WEIGHT_STEP_KG)


def rest_seconds(exercise: ExerciseRecord, level: FitnessLevel, objective: Objective) -> int:
    name = _name(exercise)
    part = norm(exercise.body_part)
    if "squat" in name or "deadlift" in name or part == "upper_legs":
        rest = 180.0
    elif part in ("chest", "back"):
        rest = 120.0
    elif part in ("upper_arms", "waist"):
        rest = 60.0
    else:
        rest = 90.0

    rest *= OBJECTIVE_REST_FACTOR.get(objective, 1.0)
    rest *= LEVEL_REST_FACTOR.get(level, 1.0)
    return clamp(round_int(rest), *REST_BOUNDS)


def compute_rpe(level: FitnessLevel, objective: Objective, progression: WeeklyProgression) -> float:
    rpe = BASE_RPE.get(level, 6.0)
    phase = Phase.deload if progression.is_deload_week else progression.phase
    rpe += PHASE_RPE_SHIFT[phase]
    rpe += OBJECTIVE_RPE_SHIFT.get(objective, 0.0)
    return clamp(round_half_up(rpe, 1), *RPE_BOUNDS)


def intensity_label(level: FitnessLevel, objective: Objective) -> Intensity:
    if level == FitnessLevel.BEGINNER:
        return Intensity.LOW
    if level == FitnessLevel.ADVANCED and objective in (Objective.LOSE_FAT, Objective.GAIN_MUSCLE):
        return Intensity.HIGH
    return Intensity.MEDIUM


def compute_prescription(
    exercise: ExerciseRecord,
    profile: UserProfile,
    strategy: PlanStrategy,
    progression: WeeklyProgression,
) -> Prescription:
    """Sets/reps/weight/rest/RPE cho 1 bài ở 1 buổi, đã áp WeeklyProgression. Mọi số đều clamp."""
    level = strategy.experience_level
    objective = strategy.primary_objective

    b_reps = base_reps(exercise, level, objective)
    b_sets = base_sets(exercise, level, objective)
    b_weight = base_weight_kg(exercise, profile, objective)
    timed = is_duration_based(exercise)

    sets = clamp(round_int(b_sets * progression.volume_modifier + progression.sets_adjustment), *SETS_BOUNDS)

    reps: Optional[int] = None
    duration: Optional[int] = None
    if timed:
        duration = base_duration_seconds(exercise, level)
    else:
        reps = clamp(round_int(b_reps + progression.reps_adjustment), *REPS_BOUNDS)

    weight = b_weight
    if not _is_bodyweight(exercise) and b_weight > 0:
        weight = max(MIN_WEIGHT_KG, b_weight + progression.weight_increase)

    return Prescription(
        sets=sets,
        reps=reps,
        duration_seconds=duration,
        weight_kg=weight,
        rest_seconds=rest_seconds(exercise, level, objective),
        intensity=intensity_label(level, objective),
        rpe=compute_rpe(level, objective, progression),
        progressive_overload=ProgressiveOverloadBreakdown(
            base_sets=b_sets,
            base_reps=None if timed else b_reps,
            base_weight_kg=b_weight,
            sets_adjustment=progression.sets_adjustment,
            reps_adjustment=progression.reps_adjustment,
            weight_increase=progression.weight_increase,
        ),
    )


def generate_note(exercise: ExerciseRecord, strategy: PlanStrategy) -> str:
    """Ghi chú an toàn / form. Chỉ mang tính tham khảo."""
    name = _name(exercise)
    part = norm(exercise.body_part)
    notes: List[str] = []

    if strategy.experience_level == FitnessLevel.BEGINNER:
        notes.append("Focus on proper form and controlled movement")
        if exercise.difficulty_level >= 4:
            notes.append("Start with lighter weight or assisted variation")

    areas = set(strategy.affected_areas())
    if "knee" in areas and ("squat" in name or "lunge" in name or part in ("upper_legs", "legs")):
        notes.append("Modify range of motion if experiencing knee discomfort")
        notes.append("Consider partial squats or box squats")
    if "spine" in areas and ("deadlift" in name or "row" in name):
        notes.append("Maintain neutral spine throughout the movement")
        notes.append("Engage core muscles for spinal stability")
    if "shoulder" in areas and (part == "shoulders" or "press" in name):
        notes.append("Avoid overhead movements if experiencing shoulder pain")
        notes.append("Start with reduced range of motion")

    if exercise.safety_notes.strip():
        notes.append(exercise.safety_notes.strip().rstrip("."))

    for needle, cue in FORM_CUES:
        if needle in name:
            notes.append(cue)

    if not notes:
        return ""
    return ". ".join(notes) + "."


def estimate_item_seconds(prescription: Prescription) -> int:
    if prescription.duration_seconds is not None:
        work = prescription.duration_seconds * prescription.sets
    else:
        work = (prescription.reps or 0) * SECONDS_PER_REP * prescription.sets
    return int(work + prescription.rest_seconds * (prescription.sets - 1))


def session_duration_seconds(prescriptions: Sequence[Prescription]) -> int:
    return sum(estimate_item_seconds(p) for p in prescriptions)
