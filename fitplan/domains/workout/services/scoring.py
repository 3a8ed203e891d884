from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from fitplan.domains.workout.contract import (
    BODYWEIGHT_EQUIPMENT,
    EQUIPMENT_BY_PREFERENCE,
    RESTRICTION_KEYWORDS,
    canonicalize_equipment_code,
)
from fitplan.domains.workout.schemas import (
    ExerciseRecord,
    FitnessLevel,
    HealthConsideration,
    Objective,
    PlanStrategy,
    ScoredCandidate,
)
from fitplan.domains.workout.services.common import contains_any, lowered, norm


DIFFICULTY_RANGES: Dict[FitnessLevel, Tuple[int, int]] = {
    FitnessLevel.BEGINNER: (1, 3),
    FitnessLevel.INTERMEDIATE: (2, 4),
    FitnessLevel.ADVANCED: (3, 5),
}

STRENGTH_LIFT_NAMES = ("squat", "deadlift", "bench press", "overhead press", "row", "pull-up")
METABOLIC_NAMES = ("hiit", "circuit", "metabolic", "sprint")


# ============================================================
# Hard filters
# ============================================================

def matches_restriction(exercise: ExerciseRecord, restriction: str) -> bool:
    """True nếu name/instructions chứa keyword của restriction (substring, không phân biệt hoa thường)."""
    keywords = RESTRICTION_KEYWORDS.get(restriction, ())
    if not keywords:
        return False
    return contains_any(exercise.searchable_text(), keywords)


def violates_restrictions(exercise: ExerciseRecord, restrictions: Sequence[str]) -> bool:
    return any(matches_restriction(exercise, r) for r in restrictions)


def violates_considerations(exercise: ExerciseRecord, considerations: Sequence[HealthConsideration]) -> bool:
    return violates_restrictions(exercise, [r for c in considerations for r in c.restrictions])


def within_difficulty(exercise: ExerciseRecord, level: FitnessLevel) -> bool:
    lo, hi = DIFFICULTY_RANGES[level]
    return lo <= exercise.difficulty_level <= hi


def matches_equipment(exercise: ExerciseRecord, preferences: Sequence[str]) -> bool:
    if not preferences:
        return True
    code = canonicalize_equipment_code(exercise.equipment)
    for pref in preferences:
        allowed = EQUIPMENT_BY_PREFERENCE.get(pref, ())
        if allowed is None:
            if code != BODYWEIGHT_EQUIPMENT:
                return True
        elif code in allowed:
            return True
    return False


def _category(ex: ExerciseRecord) -> str:
    c = norm(ex.category)
    return "plyometrics" if c.startswith("plyometric") else c


def _is_cardio(ex: ExerciseRecord) -> bool:
    return _category(ex) == "cardio" or ex.exercise_type == "CARDIO"


def _is_plyo(ex: ExerciseRecord) -> bool:
    return _category(ex) == "plyometrics" or ex.exercise_type == "PLYOMETRIC"


def matches_objective_category(exercise: ExerciseRecord, objective: Objective) -> bool:
    category = _category(exercise)
    kind = exercise.exercise_type
    name = exercise.name.lower()
    tags = lowered(exercise.tags)

    if objective == Objective.GAIN_MUSCLE:
        if _is_cardio(exercise):
            return contains_any(name, METABOLIC_NAMES) or "hiit" in tags or "metabolic" in tags
        if category == "strength":
            return (
                kind in ("COMPOUND", "FREEWEIGHT", "MACHINE", "ISOLATION")
                or "compound" in name
                or "compound" in tags
            )
        return _is_plyo(exercise)

    if objective == Objective.LOSE_FAT:
        if _is_cardio(exercise) or _is_plyo(exercise) or kind == "BODYWEIGHT":
            return True
        if category == "strength":
            return (
                kind in ("COMPOUND", "FREEWEIGHT")
                or contains_any(name, ("compound", "squat", "deadlift", "press"))
                or "compound" in tags
            )
        return category == "core"

    if objective == Objective.ENDURANCE:
        if _is_cardio(exercise) or kind == "BODYWEIGHT":
            return True
        if category == "strength":
            return (
                contains_any(name, ("endurance", "circuit"))
                or "endurance" in tags
                or "aerobic" in tags
            )
        return category == "core"

    return True


# ============================================================
# Objective priority boost (first matching rule wins)
# ============================================================

Rule = Tuple[Callable[[ExerciseRecord], bool], int]


def _is_compound(ex: ExerciseRecord) -> bool:
    return (
        ex.exercise_type == "COMPOUND"
        or contains_any(ex.name.lower(), STRENGTH_LIFT_NAMES)
        or "compound" in lowered(ex.tags)
    )


def _is_strength(ex: ExerciseRecord) -> bool:
    return _category(ex) == "strength"


def _is_core(ex: ExerciseRecord) -> bool:
    return _category(ex) == "core" or norm(ex.body_part) == "waist"


def _is_bodyweight(ex: ExerciseRecord) -> bool:
    return ex.exercise_type == "BODYWEIGHT"


def _fat_burner(ex: ExerciseRecord) -> bool:
    tags = lowered(ex.tags)
    return (
        _is_cardio(ex)
        or _is_plyo(ex)
        or contains_any(ex.name.lower(), ("hiit", "circuit", "metabolic", "sprint", "burpee", "jump"))
        or any(t in tags for t in ("fat burning", "metabolic", "hiit"))
    )


def _aerobic(ex: ExerciseRecord) -> bool:
    tags = lowered(ex.tags)
    return (
        _is_cardio(ex)
        or contains_any(ex.name.lower(), ("run", "bike", "row", "swim"))
        or "endurance" in tags
        or "aerobic" in tags
    )


def _endurance_strength(ex: ExerciseRecord) -> bool:
    return (
        "endurance" in lowered(ex.tags)
        or "circuit" in ex.name.lower()
        or (_is_strength(ex) and ex.exercise_type in ("BODYWEIGHT", "ENDURANCE"))
    )


PRIORITY_RULES: Dict[Objective, Tuple[Rule, ...]] = {
    Objective.GAIN_MUSCLE: (
        (_is_compound, -3),
        (lambda ex: _is_strength(ex) and ex.exercise_type in ("FREEWEIGHT", "MACHINE"), -2),
        (lambda ex: ex.exercise_type == "ISOLATION", -2),
        (_is_strength, -1),
        (_is_plyo, 0),
        (_is_cardio, 2),
    ),
    Objective.LOSE_FAT: (
        (_fat_burner, -4),
        (_is_bodyweight, -2),
        (lambda ex: ex.exercise_type == "COMPOUND"
            or contains_any(ex.name.lower(), ("squat", "deadlift", "burpee"))
            or "compound" in lowered(ex.tags), -1),
        (_is_strength, 0),
        (_is_core, -1),
    ),
    Objective.ENDURANCE: (
        (_aerobic, -4),
        (_is_bodyweight, -2),
        (_endurance_strength, -1),
        (_is_core, -1),
        (lambda ex: _is_strength(ex) and ex.exercise_type == "COMPOUND", 1),
        (_is_strength, 2),
    ),
    Objective.MAINTAIN: (
        (lambda ex: ex.exercise_type in ("COMPOUND", "BODYWEIGHT"), -1),
    ),
}


def priority_delta(exercise: ExerciseRecord, objective: Objective) -> int:
    for predicate, delta in PRIORITY_RULES.get(objective, ()):
        if predicate(exercise):
            return delta
    return 0


# ============================================================
# Pipeline (mỗi bước là pure function, trả list mới)
# ============================================================

def dedupe_candidates(candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    seen: set[str] = set()
    out: List[ScoredCandidate] = []
    for c in candidates:
        if c.exercise.id in seen:
            continue
        seen.add(c.exercise.id)
        out.append(c)
    return out


def passes_hard_filters(
    candidate: ScoredCandidate,
    strategy: PlanStrategy,
    restrictions: Optional[Sequence[str]] = None,
) -> bool:
    ex = candidate.exercise
    if restrictions is None:
        restrictions = strategy.active_restrictions()
    return (
        within_difficulty(ex, strategy.experience_level)
        and not violates_restrictions(ex, restrictions)
        and matches_equipment(ex, strategy.equipment_preferences)
        and matches_objective_category(ex, strategy.primary_objective)
    )


def filter_candidates(candidates: Sequence[ScoredCandidate], strategy: PlanStrategy) -> List[ScoredCandidate]:
    restrictions = strategy.active_restrictions()
    return [c for c in candidates if passes_hard_filters(c, strategy, restrictions)]


def apply_priority_boost(candidates: Sequence[ScoredCandidate], objective: Objective) -> List[ScoredCandidate]:
    return [
        c.model_copy(update={"priority": max(1, c.priority + priority_delta(c.exercise, objective))})
        for c in candidates
    ]


def sort_candidates(candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    # sort ổn định: hoà (priority, similarity) giữ thứ tự xuất hiện
    return sorted(candidates, key=lambda c: (c.priority, -c.similarity))


def score_candidates(candidates: Sequence[ScoredCandidate], strategy: PlanStrategy) -> List[ScoredCandidate]:
    """dedupe -> hard filters -> objective boost -> sort (priority asc, similarity desc)."""
    steps: Tuple[Callable[[List[ScoredCandidate]], List[ScoredCandidate]], ...] = (
        dedupe_candidates,
        lambda xs: filter_candidates(xs, strategy),
        lambda xs: apply_priority_boost(xs, strategy.primary_objective),
        sort_candidates,
    )
    pool = list(candidates)
    for step in steps:
        pool = step(pool)

    print(f"[SCORING] in={len(candidates)} out={len(pool)}")
    return pool
