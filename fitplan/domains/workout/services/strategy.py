from __future__ import annotations

import math
import re
from typing import Dict, Optional, Tuple

from fitplan.domains.workout.ports import HealthClassifier
from fitplan.domains.workout.schemas import (
    FitnessLevel,
    Goal,
    IntensityLevel,
    Objective,
    PlanStrategy,
    RestPeriods,
    SessionStructure,
    SessionType,
    UserProfile,
    VolumeTargets,
)
from fitplan.domains.workout.services.common import clamp, round_int
from fitplan.domains.workout.services.health import analyze_health_considerations
from fitplan.domains.workout.services.periodization import build_periodization_config


# (max sessions_per_week, type, exercises_per_session, label). Số bài cố định theo tần suất,
# không phụ thuộc session_minutes.
SESSION_STRUCTURE_TABLE: Tuple[Tuple[int, SessionType, int, str], ...] = (
    (2, SessionType.full_body, 7, "minimal_frequency"),
    (3, SessionType.full_body_varied, 6, "moderate_frequency"),
    (4, SessionType.upper_lower, 5, "upper_lower_split"),
    (7, SessionType.body_part_split, 5, "high_frequency"),
)

BASE_INTENSITY = 5
LEVEL_INTENSITY_SHIFT: Dict[FitnessLevel, int] = {
    FitnessLevel.BEGINNER: -2,
    FitnessLevel.INTERMEDIATE: 0,
    FitnessLevel.ADVANCED: 2,
}
OBJECTIVE_INTENSITY_SHIFT: Dict[Objective, int] = {
    Objective.LOSE_FAT: 1,
    Objective.ENDURANCE: 1,
    Objective.GAIN_MUSCLE: 0,
    Objective.MAINTAIN: 0,
}

# rest (giây): compound / isolation / cardio
BASE_REST = (180, 60, 15)
OBJECTIVE_REST_SCALE: Dict[Objective, Tuple[float, float, float]] = {
    Objective.LOSE_FAT: (0.75, 0.75, 0.5),
    Objective.GAIN_MUSCLE: (1.5, 1.5, 1.0),
    Objective.ENDURANCE: (1.0, 1.0, 1.0),
    Objective.MAINTAIN: (1.0, 1.0, 1.0),
}
LEVEL_REST_DELTA: Dict[FitnessLevel, int] = {
    FitnessLevel.BEGINNER: 15,
    FitnessLevel.INTERMEDIATE: 0,
    FitnessLevel.ADVANCED: -15,
}
MIN_REST_SECONDS = 10

# objective -> (sets/muscle group/tuần, reps range)
VOLUME_TABLE: Dict[Objective, Tuple[int, Tuple[int, int]]] = {
    Objective.GAIN_MUSCLE: (14, (8, 12)),
    Objective.LOSE_FAT: (10, (12, 15)),
    Objective.ENDURANCE: (8, (15, 25)),
    Objective.MAINTAIN: (12, (8, 12)),
}

SUGGESTED_WEEKS_TABLE: Dict[FitnessLevel, Dict[Objective, int]] = {
    FitnessLevel.BEGINNER: {
        Objective.LOSE_FAT: 6,
        Objective.GAIN_MUSCLE: 8,
        Objective.ENDURANCE: 6,
        Objective.MAINTAIN: 4,
    },
    FitnessLevel.INTERMEDIATE: {
        Objective.LOSE_FAT: 8,
        Objective.GAIN_MUSCLE: 10,
        Objective.ENDURANCE: 8,
        Objective.MAINTAIN: 6,
    },
    FitnessLevel.ADVANCED: {
        Objective.LOSE_FAT: 10,
        Objective.GAIN_MUSCLE: 12,
        Objective.ENDURANCE: 10,
        Objective.MAINTAIN: 8,
    },
}
MIN_WEEKS, MAX_WEEKS = 4, 16
WEEKS_HEALTH_KEYWORDS = ("knee", "back", "shoulder", "hip")


def select_session_structure(sessions_per_week: int) -> SessionStructure:
    for max_spw, kind, count, label in SESSION_STRUCTURE_TABLE:
        if sessions_per_week <= max_spw:
            return SessionStructure(type=kind, exercises_per_session=count, strategy=label)
    _, kind, count, label = SESSION_STRUCTURE_TABLE[-1]
    return SessionStructure(type=kind, exercises_per_session=count, strategy=label)


def build_rest_periods(fitness_level: FitnessLevel, objective: Objective) -> RestPeriods:
    scale = OBJECTIVE_REST_SCALE[objective]
    delta = LEVEL_REST_DELTA[fitness_level]
    compound, isolation, cardio = (
        max(MIN_REST_SECONDS, round_int(base * s) + delta)
        for base, s in zip(BASE_REST, scale)
    )
    return RestPeriods(compound=compound, isolation=isolation, cardio=cardio)


def build_intensity_level(fitness_level: FitnessLevel, objective: Objective) -> IntensityLevel:
    level = clamp(
        BASE_INTENSITY + LEVEL_INTENSITY_SHIFT[fitness_level] + OBJECTIVE_INTENSITY_SHIFT[objective],
        1,
        10,
    )
    return IntensityLevel(
        level=level,
        rpe_target=clamp(level + 1, 5, 9),
        rest_periods=build_rest_periods(fitness_level, objective),
    )


def build_volume_targets(fitness_level: FitnessLevel, goal: Goal) -> VolumeTargets:
    sets, reps_range = VOLUME_TABLE[goal.objective]
    if fitness_level == FitnessLevel.BEGINNER:
        sets = max(6, math.floor(sets * 0.7))
    elif fitness_level == FitnessLevel.ADVANCED:
        sets = math.floor(sets * 1.3)
    return VolumeTargets(
        sets_per_muscle_group=sets,
        reps_range=reps_range,
        weekly_volume_minutes=goal.sessions_per_week * goal.session_minutes,
    )


def suggest_weeks(profile: UserProfile, goal: Goal) -> int:
    weeks = SUGGESTED_WEEKS_TABLE[profile.fitness_level][goal.objective]

    note = (profile.health_note or "").lower()
    if any(re.search(rf"\b{k}", note) for k in WEEKS_HEALTH_KEYWORDS):
        weeks += 2

    if goal.sessions_per_week <= 2:
        weeks += 2
    elif goal.sessions_per_week >= 5:
        weeks -= 1

    if goal.session_minutes <= 30:
        weeks += 1
    elif goal.session_minutes >= 90:
        weeks -= 1

    if profile.age > 50:
        weeks += 1
    elif profile.age < 25:
        weeks -= 1

    return clamp(weeks, MIN_WEEKS, MAX_WEEKS)


def analyze_strategy(
    profile: UserProfile,
    goal: Goal,
    notes: Optional[str] = None,
    *,
    total_weeks: Optional[int] = None,
    classifier: Optional[HealthClassifier] = None,
) -> PlanStrategy:
    """
    UserProfile + Goal (+ notes) -> PlanStrategy.
    total_weeks mặc định = suggest_weeks(); chỉ dùng để dựng periodization_config.
    """
    weeks = total_weeks if total_weeks is not None else suggest_weeks(profile, goal)
    considerations = analyze_health_considerations(profile, notes, classifier=classifier)

    strategy = PlanStrategy(
        primary_objective=goal.objective,
        experience_level=profile.fitness_level,
        session_structure=select_session_structure(goal.sessions_per_week),
        equipment_preferences=list(goal.equipment_preferences),
        special_considerations=considerations,
        intensity_level=build_intensity_level(profile.fitness_level, goal.objective),
        volume_targets=build_volume_targets(profile.fitness_level, goal),
        periodization_config=build_periodization_config(profile.fitness_level, goal.objective, weeks),
    )
    print(
        f"[STRATEGY] structure={strategy.session_structure.type.value} "
        f"intensity={strategy.intensity_level.level} weeks={weeks} "
        f"considerations={[c.affected_area for c in considerations]}"
    )
    return strategy
