from __future__ import annotations

from typing import Dict, Sequence, Tuple

from fitplan.domains.workout.schemas import FitnessLevel, Goal, Objective, UserProfile

FL, OB = FitnessLevel, Objective

TITLE_TEMPLATES: Dict[Tuple[FitnessLevel, Objective], Tuple[str, ...]] = {
    (FL.BEGINNER, OB.LOSE_FAT): (
        "Beginner's Fat Loss Journey",
        "Start Your Weight Loss Transformation",
        "Foundation Fat Burn Program",
        "Beginner's Weight Loss Challenge",
    ),
    (FL.BEGINNER, OB.GAIN_MUSCLE): (
        "Beginner's Muscle Building Program",
        "Start Building Your Strength",
        "Foundation Muscle Growth Plan",
        "Your First Muscle Building Journey",
    ),
    (FL.BEGINNER, OB.ENDURANCE): (
        "Beginner's Endurance Builder",
        "Start Your Fitness Journey",
        "Foundation Cardio Program",
        "Beginner's Stamina Challenge",
    ),
    (FL.BEGINNER, OB.MAINTAIN): (
        "Beginner's Wellness Program",
        "Start Your Healthy Lifestyle",
        "Foundation Fitness Plan",
        "Beginner's Health Journey",
    ),
    (FL.INTERMEDIATE, OB.LOSE_FAT): (
        "Intermediate Fat Loss Transformation",
        "Intermediate Weight Loss Challenge",
        "Serious Fat Burn Program",
        "Intermediate Body Recomposition",
    ),
    (FL.INTERMEDIATE, OB.GAIN_MUSCLE): (
        "Intermediate Muscle Building Program",
        "Serious Muscle Growth Plan",
        "Intermediate Hypertrophy Challenge",
        "Intermediate Strength Journey",
    ),
    (FL.INTERMEDIATE, OB.ENDURANCE): (
        "Intermediate Endurance Challenge",
        "Serious Stamina Builder",
        "Intermediate Cardio Program",
        "Intermediate Endurance Journey",
    ),
    (FL.INTERMEDIATE, OB.MAINTAIN): (
        "Intermediate Wellness Program",
        "Serious Fitness Plan",
        "Intermediate Lifestyle Challenge",
        "Intermediate Wellness Journey",
    ),
    (FL.ADVANCED, OB.LOSE_FAT): (
        "Elite Fat Loss Program",
        "Advanced Body Recomposition",
        "Expert Weight Loss Challenge",
        "Elite Fat Burn Transformation",
    ),
    (FL.ADVANCED, OB.GAIN_MUSCLE): (
        "Elite Muscle Building Program",
        "Advanced Hypertrophy Challenge",
        "Expert Strength Development",
        "Elite Muscle Growth Journey",
    ),
    (FL.ADVANCED, OB.ENDURANCE): (
        "Elite Endurance Program",
        "Advanced Cardio Challenge",
        "Expert Stamina Builder",
        "Elite Endurance Journey",
    ),
    (FL.ADVANCED, OB.MAINTAIN): (
        "Elite Wellness Program",
        "Advanced Health Challenge",
        "Expert Fitness Plan",
        "Elite Lifestyle Journey",
    ),
}


def _first_with(templates: Sequence[str], words: Sequence[str]) -> str:
    for t in templates:
        low = t.lower()
        if any(w in low for w in words):
            return t
    return templates[0]


def build_plan_title(profile: UserProfile, goal: Goal, total_weeks: int) -> str:
    templates = TITLE_TEMPLATES[(profile.fitness_level, goal.objective)]
    title = templates[0]

    note = (profile.health_note or "").lower()
    if "knee" in note or "back" in note:
        title = _first_with(templates, ("foundation", "start"))

    # độ dài plan ưu tiên hơn health note
    if total_weeks >= 10:
        title = _first_with(templates, ("journey", "transformation", "program"))
    elif total_weeks <= 6:
        title = _first_with(templates, ("challenge", "start"))

    if total_weeks >= 12:
        title += f" ({total_weeks}-Week Program)"
    elif total_weeks >= 8:
        title += f" ({total_weeks}-Week Challenge)"

    if goal.sessions_per_week <= 2:
        title += " - Low Frequency"
    elif goal.sessions_per_week >= 5:
        title += " - High Frequency"

    if goal.session_minutes <= 30:
        title += " - Quick Sessions"
    elif goal.session_minutes >= 90:
        title += " - Extended Sessions"

    return title


def build_plan_description(profile: UserProfile, goal: Goal, total_weeks: int, split_label: str) -> str:
    objective = goal.objective.value.replace("_", " ").lower()
    return (
        f"{total_weeks}-week {objective} plan for a {profile.fitness_level.value.lower()} trainee: "
        f"{goal.sessions_per_week} x {goal.session_minutes} min sessions per week ({split_label})."
    )
