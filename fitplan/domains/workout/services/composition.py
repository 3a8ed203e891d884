from __future__ import annotations

from typing import List, Sequence, Set

from fitplan.domains.workout.schemas import MovementPattern, ScoredCandidate, SessionTemplate
from fitplan.domains.workout.services.common import norm

# số bài luôn được nhận đầu tiên, bất kể diversity
FORCED_ADMITS = 3


def _muscle_key(m: str) -> str:
    return norm(m).replace("_", " ")


def muscle_matches(primary_muscle: str, target_muscles: Sequence[str]) -> bool:
    """Exact hoặc substring (case-insensitive, '_' == ' ') theo cả hai chiều."""
    pm = _muscle_key(primary_muscle)
    if not pm:
        return False
    for t in target_muscles:
        tm = _muscle_key(t)
        if tm and (pm == tm or tm in pm or pm in tm):
            return True
    return False


def matches_template(candidate: ScoredCandidate, template: SessionTemplate) -> bool:
    return (
        candidate.movement_pattern in template.patterns
        or muscle_matches(candidate.exercise.primary_muscle, template.target_muscles)
    )


def should_admit(
    candidate: ScoredCandidate,
    selected_count: int,
    used_patterns: Set[MovementPattern],
    used_muscles: Set[str],
    template_pattern_count: int,
) -> bool:
    """Admission predicate của pass 1 (diversity)."""
    if selected_count < FORCED_ADMITS:
        return True
    if candidate.movement_pattern not in used_patterns:
        return True
    if _muscle_key(candidate.exercise.primary_muscle) not in used_muscles:
        return True
    return len(used_patterns) < template_pattern_count


def compose_session(template: SessionTemplate, pool: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    """
    Greedy 2 pass trên pool đã sort (priority asc, similarity desc):
      - pass 1: nhận theo should_admit cho tới exercise_count
      - pass 2: lấp chỗ trống bằng candidate chưa chọn, cùng thứ tự
    Pool nhỏ hơn target -> session thiếu bài (degraded, không phải lỗi).
    """
    target = template.exercise_count
    eligible = [c for c in pool if matches_template(c, template)]

    selected: List[ScoredCandidate] = []
    picked: Set[str] = set()
    used_patterns: Set[MovementPattern] = set()
    used_muscles: Set[str] = set()
    pattern_count = len(set(template.patterns))

    for c in eligible:
        if len(selected) >= target:
            break
        if should_admit(c, len(selected), used_patterns, used_muscles, pattern_count):
            selected.append(c)
            picked.add(c.exercise.id)
            used_patterns.add(c.movement_pattern)
            used_muscles.add(_muscle_key(c.exercise.primary_muscle))

    if len(selected) < target:
        for c in eligible:
            if len(selected) >= target:
                break
            if c.exercise.id in picked:
                continue
            selected.append(c)
            picked.add(c.exercise.id)

    return selected[:target]


def compose_sessions(templates: Sequence[SessionTemplate], pool: Sequence[ScoredCandidate]) -> List[List[ScoredCandidate]]:
    return [compose_session(t, pool) for t in templates]
