from __future__ import annotations

from typing import Dict, List, Tuple

from fitplan.domains.workout.schemas import (
    MovementPattern,
    PlanStrategy,
    SessionTemplate,
    SessionType,
)

MP = MovementPattern

# (name, focus, patterns, target muscles)
TemplateSpec = Tuple[str, str, Tuple[MovementPattern, ...], Tuple[str, ...]]

FULL_BODY: TemplateSpec = (
    "Full Body",
    "full_body",
    (MP.squat, MP.hinge, MP.push_horizontal, MP.pull_horizontal, MP.core),
    ("quadriceps", "hamstrings", "pectorals", "latissimus_dorsi", "deltoids"),
)

FULL_BODY_VARIATIONS: Tuple[TemplateSpec, ...] = (
    (
        "Full Body - Push Focus",
        "push_focus",
        (MP.squat, MP.push_horizontal, MP.push_vertical, MP.pull_horizontal, MP.core),
        ("quadriceps", "pectorals", "deltoids", "latissimus_dorsi", "abdominals"),
    ),
    (
        "Full Body - Pull Focus",
        "pull_focus",
        (MP.hinge, MP.pull_horizontal, MP.pull_vertical, MP.push_horizontal, MP.core),
        ("hamstrings", "latissimus_dorsi", "rhomboids", "pectorals", "abdominals"),
    ),
    (
        "Full Body - Lower Focus",
        "lower_focus",
        (MP.squat, MP.hinge, MP.carry, MP.push_horizontal, MP.core),
        ("quadriceps", "hamstrings", "glutes", "pectorals", "abdominals"),
    ),
)

UPPER_LOWER: Tuple[TemplateSpec, ...] = (
    (
        "Upper Body",
        "upper",
        (MP.push_horizontal, MP.push_vertical, MP.pull_horizontal, MP.pull_vertical),
        ("pectorals", "deltoids", "latissimus_dorsi", "rhomboids", "biceps", "triceps"),
    ),
    (
        "Lower Body",
        "lower",
        (MP.squat, MP.hinge, MP.carry, MP.core),
        ("quadriceps", "hamstrings", "glutes", "calves", "abdominals"),
    ),
)

BODY_PART_SPLIT: Tuple[TemplateSpec, ...] = (
    ("Chest & Triceps", "chest_triceps", (MP.push_horizontal, MP.push_vertical), ("pectorals", "triceps", "deltoids")),
    ("Back & Biceps", "back_biceps", (MP.pull_horizontal, MP.pull_vertical), ("latissimus_dorsi", "rhomboids", "biceps")),
    ("Legs & Glutes", "legs_glutes", (MP.squat, MP.hinge), ("quadriceps", "hamstrings", "glutes", "calves")),
    ("Shoulders & Core", "shoulders_core", (MP.push_vertical, MP.core), ("deltoids", "abdominals")),
    ("Arms & Accessories", "arms", (MP.push_horizontal, MP.pull_horizontal), ("biceps", "triceps", "forearms")),
)

ROTATIONS: Dict[SessionType, Tuple[TemplateSpec, ...]] = {
    SessionType.full_body: (FULL_BODY,),
    SessionType.full_body_varied: FULL_BODY_VARIATIONS,
    SessionType.upper_lower: UPPER_LOWER,
    SessionType.body_part_split: BODY_PART_SPLIT,
}


def build_session_templates(strategy: PlanStrategy, total_sessions: int) -> List[SessionTemplate]:
    """1 template / buổi tập trên lịch, xoay vòng theo session structure."""
    rotation = ROTATIONS[strategy.session_structure.type]
    count = strategy.session_structure.exercises_per_session
    intensity = strategy.intensity_level.level

    templates: List[SessionTemplate] = []
    for i in range(total_sessions):
        name, focus, patterns, muscles = rotation[i % len(rotation)]
        if strategy.session_structure.type == SessionType.full_body:
            name = f"{name} {i + 1}"
        templates.append(
            SessionTemplate(
                name=name,
                focus=focus,
                patterns=list(patterns),
                target_muscles=list(muscles),
                exercise_count=count,
                intensity_level=intensity,
            )
        )
    return templates
