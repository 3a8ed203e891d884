from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from fitplan.domains.workout.ports import ExerciseCatalog, SemanticRetrievalService
from fitplan.domains.workout.schemas import (
    MovementPattern,
    Objective,
    PlanStrategy,
    ScoredCandidate,
)
from fitplan.domains.workout.services.common import clamp


DEFAULT_SIMILARITY_THRESHOLD = 0.3
DEFAULT_MAX_WORKERS = 4

MP = MovementPattern

# pattern -> (base terms, base priority, base max_results)
PATTERN_BASE: Dict[MovementPattern, Tuple[str, int, int]] = {
    MP.squat: ("squat hip hinge quad glute compound lower body", 1, 8),
    MP.hinge: ("deadlift hinge posterior chain hamstring glute", 1, 8),
    MP.lunge: ("lunge split squat unilateral single leg quad glute balance", 2, 6),
    MP.push_vertical: ("press overhead shoulder vertical push", 2, 6),
    MP.push_horizontal: ("press chest horizontal push bench", 1, 8),
    MP.pull_vertical: ("pull up lat pulldown vertical pull back", 1, 8),
    MP.pull_horizontal: ("row pull horizontal back rhomboids", 1, 8),
    MP.carry: ("carry walk farmer core stability", 3, 4),
    MP.core: ("plank core abs stability anti-extension", 2, 6),
    MP.rotation: ("rotation anti-rotation core oblique twist woodchop", 2, 6),
    MP.gait: ("walk run sprint locomotion movement pattern", 3, 4),
}

# cardio chỉ thêm khi objective là LOSE_FAT / ENDURANCE
CARDIO_BASE: Dict[Objective, Tuple[str, int, int]] = {
    Objective.LOSE_FAT: ("cardio HIIT high intensity interval training metabolic conditioning fat burning", 1, 12),
    Objective.ENDURANCE: ("cardio endurance aerobic long duration steady state", 1, 15),
}

OBJECTIVE_CONTEXT: Dict[Objective, str] = {
    Objective.GAIN_MUSCLE: "muscle building hypertrophy strength training compound",
    Objective.LOSE_FAT: "fat loss weight loss calorie burn metabolic HIIT",
    Objective.ENDURANCE: "endurance stamina aerobic cardiovascular",
    Objective.MAINTAIN: "maintenance health fitness balanced",
}

EQUIPMENT_TERMS: Dict[str, str] = {
    "bodyweight": "bodyweight no equipment home",
    "home_workout": "bodyweight no equipment home",
    "gym": "gym equipment weights",
}

# affected_area -> (pattern substrings, None = mọi pattern; safety text)
SAFETY_TERMS: Dict[str, Tuple[Optional[Tuple[str, ...]], str]] = {
    "knee": (("squat",), "knee safe low impact"),
    "spine": (("hinge",), "back safe neutral spine"),
    "shoulder": (("push",), "shoulder safe moderate range"),
    "hip": (("squat", "hinge"), "hip safe controlled range"),
    "ankle": (("gait", "cardio"), "ankle safe low impact"),
    "wrist": (("push", "press"), "wrist safe neutral grip"),
    "neck": (None, "neck safe neutral position"),
    "elbow": (("push", "press"), "elbow safe controlled range"),
}

GAIN_COMPOUND_PATTERNS = {MP.squat, MP.hinge, MP.push_horizontal, MP.pull_vertical, MP.pull_horizontal}
GAIN_SECONDARY_PATTERNS = {MP.lunge, MP.push_vertical}
LOSE_FAT_STRENGTH_PATTERNS = {MP.squat, MP.hinge, MP.push_horizontal, MP.pull_vertical}
CONDITIONING_PATTERNS = {MP.cardio, MP.gait}
CONDITIONING_BUDGET = (10, 15)


@dataclass(frozen=True)
class PatternQuery:
    pattern: MovementPattern
    text: str
    max_results: int
    priority: int


def objective_adjustment(objective: Objective, pattern: MovementPattern) -> Tuple[int, int, str]:
    """(priority delta, max_results delta, extra terms) theo objective."""
    if objective == Objective.GAIN_MUSCLE:
        if pattern in GAIN_COMPOUND_PATTERNS:
            return -1, 2, "hypertrophy muscle building strength"
        if pattern in GAIN_SECONDARY_PATTERNS:
            return 0, 1, ""
        return 1, -2, ""

    if objective == Objective.LOSE_FAT:
        if pattern in CONDITIONING_PATTERNS:
            return -2, 4, "fat burning metabolic HIIT calorie burn"
        if pattern in LOSE_FAT_STRENGTH_PATTERNS:
            return 0, 1, "circuit metabolic"
        return 1, -1, ""

    if objective == Objective.ENDURANCE:
        if pattern in CONDITIONING_PATTERNS:
            return -2, 5, "aerobic endurance steady state long duration"
        if pattern in (MP.core, MP.rotation):
            return -1, 2, "endurance high reps"
        return 0, 1, "endurance light weight"

    return 0, 0, "maintenance balanced"


def safety_terms(strategy: PlanStrategy, pattern: MovementPattern) -> List[str]:
    out: List[str] = []
    for area in strategy.affected_areas():
        rule = SAFETY_TERMS.get(area)
        if rule is None:
            continue
        needles, text = rule
        if needles is not None and not any(n in pattern.value for n in needles):
            continue
        if text not in out:
            out.append(text)
    return out


def equipment_terms(preferences: Sequence[str]) -> List[str]:
    out: List[str] = []
    for pref in preferences:
        t = EQUIPMENT_TERMS.get(pref)
        if t and t not in out:
            out.append(t)
    return out


def _query_text(strategy: PlanStrategy, pattern: MovementPattern, terms: str, extra: str) -> str:
    parts = [
        terms,
        extra,
        strategy.experience_level.value.lower(),
        *equipment_terms(strategy.equipment_preferences),
        OBJECTIVE_CONTEXT[strategy.primary_objective],
        *safety_terms(strategy, pattern),
    ]
    return " ".join(" ".join(p.split()) for p in parts if p and p.strip())


def build_pattern_queries(strategy: PlanStrategy) -> List[PatternQuery]:
    objective = strategy.primary_objective

    queries: List[PatternQuery] = []
    for pattern, (terms, base_priority, base_results) in PATTERN_BASE.items():
        d_priority, d_results, extra = objective_adjustment(objective, pattern)
        priority = max(1, base_priority + d_priority)
        max_results = max(2, base_results + d_results)
        if extra and pattern in CONDITIONING_PATTERNS:
            max_results = clamp(max_results, *CONDITIONING_BUDGET)
        text = _query_text(strategy, pattern, terms, extra)
        queries.append(PatternQuery(pattern=pattern, text=text, max_results=max_results, priority=priority))

    # cardio thêm sau adjustment: budget/priority cố định, không có objective terms
    if objective in CARDIO_BASE:
        terms, priority, max_results = CARDIO_BASE[objective]
        text = _query_text(strategy, MP.cardio, terms, "")
        queries.append(PatternQuery(pattern=MP.cardio, text=text, max_results=max_results, priority=priority))
    return queries


def _retrieve_pattern(
    query: PatternQuery,
    retrieval: SemanticRetrievalService,
    catalog: ExerciseCatalog,
    similarity_threshold: float,
) -> List[ScoredCandidate]:
    hits = retrieval.search(query.text, query.max_results, similarity_threshold)
    if not hits:
        return []

    ids = [str(h.exercise_id) for h in hits]
    records = {r.id: r for r in catalog.get_by_ids(ids)}

    out: List[ScoredCandidate] = []
    for h in hits:
        rec = records.get(str(h.exercise_id))
        if rec is None:
            # soft-deleted hoặc không còn trong catalog
            continue
        out.append(
            ScoredCandidate(
                exercise=rec,
                similarity=clamp(float(h.similarity), 0.0, 1.0),
                movement_pattern=query.pattern,
                priority=query.priority,
            )
        )
    return out


def retrieve_candidates(
    queries: Sequence[PatternQuery],
    retrieval: SemanticRetrievalService,
    catalog: ExerciseCatalog,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[ScoredCandidate]:
    """
    1 call retrieval + 1 batch lookup / pattern, chạy song song.
    Pattern lỗi -> log + coi như 0 candidate, các pattern khác vẫn chạy.
    Kết quả nối theo thứ tự queries (không theo thứ tự hoàn thành) để deterministic.
    """
    if not queries:
        return []

    results: Dict[int, List[ScoredCandidate]] = {}

    def _safe(idx: int, q: PatternQuery) -> Tuple[int, List[ScoredCandidate]]:
        try:
            return idx, _retrieve_pattern(q, retrieval, catalog, similarity_threshold)
        except Exception as e:
            print(f"[RETRIEVAL] pattern={q.pattern.value} failed: {e}")
            return idx, []

    workers = max(1, min(max_workers, len(queries)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_safe, i, q) for i, q in enumerate(queries)]
        for future in as_completed(futures):
            idx, found = future.result()
            results[idx] = found

    candidates: List[ScoredCandidate] = []
    for i in range(len(queries)):
        candidates.extend(results.get(i, []))

    print(f"[RETRIEVAL] patterns={len(queries)} candidates={len(candidates)}")
    return candidates
