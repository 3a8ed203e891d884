from __future__ import annotations

from typing import Any, Dict, List

from fitplan.domains.workout.schemas import Goal, Plan, PlanDay, Prescription
from fitplan.domains.workout.services.prescription import REPS_BOUNDS, REST_BOUNDS, RPE_BOUNDS, SETS_BOUNDS


def _estimate_minutes(day: PlanDay) -> int:
    return int(round(day.total_duration_seconds / 60.0))


def _out_of_range(p: Prescription) -> List[str]:
    bad: List[str] = []
    checks = (
        ("sets", p.sets, SETS_BOUNDS),
        ("reps", p.reps, REPS_BOUNDS),
        ("rest_seconds", p.rest_seconds, REST_BOUNDS),
        ("rpe", p.rpe, RPE_BOUNDS),
    )
    for name, value, (lo, hi) in checks:
        if value is not None and not lo <= value <= hi:
            bad.append(f"{name}={value}")
    return bad


def evaluate_plan(plan: Plan, goal: Goal) -> Dict[str, Any]:
    """
    Post-generation checks:
      - số buổi = sessions_per_week x total_weeks, tuần liên tục từ 1
      - session thiếu bài (pool nhỏ hơn target) -> warning, không phải lỗi
      - duration ước tính vượt session_minutes -> warning
    """
    issues: List[Dict[str, Any]] = []
    warnings: List[str] = []

    expected = plan.sessions_per_week * plan.total_weeks
    if len(plan.days) != expected:
        issues.append({"type": "day_count_mismatch", "detail": f"{len(plan.days)} days, expected {expected}"})

    weeks = sorted({d.week for d in plan.days})
    if weeks and weeks != list(range(1, weeks[-1] + 1)):
        issues.append({"type": "non_contiguous_weeks", "detail": f"weeks={weeks}"})

    for d in plan.days:
        label = f"day {d.day_index + 1} ({d.session_template_name})"
        n = len(d.items)
        if n > d.exercise_count_target:
            issues.append({"type": "too_many_exercises", "detail": f"{label} has {n} > {d.exercise_count_target}"})
        elif n < d.exercise_count_target:
            warnings.append(f"{label} has {n}/{d.exercise_count_target} exercises (candidate pool too small)")

        for it in d.items:
            bad = _out_of_range(it.prescription)
            if bad:
                issues.append({"type": "prescription_out_of_range", "detail": f"{label} {it.exercise.name}: {bad}"})

        est = _estimate_minutes(d)
        if est > goal.session_minutes:
            warnings.append(f"{label} estimated {est} min, exceeds {goal.session_minutes} min")

    return {"issues": issues, "warnings": warnings}
