from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Sequence

from fitplan.domains.workout.schemas import (
    Goal,
    Plan,
    PlanDay,
    PlanItem,
    PlanStrategy,
    ScoredCandidate,
    SessionTemplate,
    UserProfile,
    WeeklyProgression,
)
from fitplan.domains.workout.services.common import clamp, round_half_up, round_int
from fitplan.domains.workout.services.periodization import PeriodizationScheduler
from fitplan.domains.workout.services.prescription import (
    compute_prescription,
    generate_note,
    session_duration_seconds,
)
from fitplan.domains.workout.services.titles import build_plan_description, build_plan_title


def week_of(day_index: int, sessions_per_week: int) -> int:
    """day_index (0-based) -> tuần (1-based), nhóm theo sessions_per_week."""
    return day_index // sessions_per_week + 1


def scheduled_date(start_date: dt.date, day_index: int, sessions_per_week: int) -> dt.date:
    offset = round_int(day_index * 7 / sessions_per_week)
    return start_date + dt.timedelta(days=offset)


def session_intensity(template: SessionTemplate, progression: WeeklyProgression) -> int:
    return clamp(round_int(template.intensity_level * progression.intensity_modifier), 1, 10)


def build_plan_day(
    day_index: int,
    template: SessionTemplate,
    selected: Sequence[ScoredCandidate],
    profile: UserProfile,
    strategy: PlanStrategy,
    progression: WeeklyProgression,
    start_date: dt.date,
    sessions_per_week: int,
) -> PlanDay:
    items: List[PlanItem] = []
    for i, c in enumerate(selected):
        items.append(
            PlanItem(
                exercise=c.exercise,
                item_index=i,
                movement_pattern=c.movement_pattern,
                prescription=compute_prescription(c.exercise, profile, strategy, progression),
                generated_note=generate_note(c.exercise, strategy),
            )
        )

    return PlanDay(
        day_index=day_index,
        week=progression.week,
        scheduled_date=scheduled_date(start_date, day_index, sessions_per_week),
        session_template_name=template.name,
        focus=template.focus,
        exercise_count_target=template.exercise_count,
        intensity_level=session_intensity(template, progression),
        phase=progression.phase,
        is_deload_week=progression.is_deload_week,
        items=items,
        total_duration_seconds=session_duration_seconds([it.prescription for it in items]),
    )


def build_plan_metadata(
    strategy: PlanStrategy,
    templates: Sequence[SessionTemplate],
    pool: Sequence[ScoredCandidate],
    scheduler: PeriodizationScheduler,
    underfilled: int,
) -> Dict[str, Any]:
    split_names: List[str] = []
    for t in templates:
        if t.name not in split_names:
            split_names.append(t.name)

    avg_sim = sum(c.similarity for c in pool) / len(pool) if pool else 0.0
    return {
        "session_structure": strategy.session_structure.model_dump(mode="json"),
        "split_names": split_names,
        "candidate_pool_size": len(pool),
        "average_similarity": round_half_up(avg_sim, 3),
        "underfilled_sessions": underfilled,
        "periodization": scheduler.summary(),
        "health_considerations": [c.model_dump(mode="json") for c in strategy.special_considerations],
        "intensity_level": strategy.intensity_level.model_dump(mode="json"),
        "volume_targets": strategy.volume_targets.model_dump(mode="json"),
    }


def schedule_progressions(strategy: PlanStrategy, total_sessions: int, sessions_per_week: int) -> List[WeeklyProgression]:
    """WeeklyProgression cho từng buổi (theo day_index), tính 1 lần / tuần."""
    scheduler = PeriodizationScheduler(strategy.periodization_config)
    by_week: Dict[int, WeeklyProgression] = {}
    out: List[WeeklyProgression] = []
    for i in range(total_sessions):
        week = week_of(i, sessions_per_week)
        if week not in by_week:
            by_week[week] = scheduler.weekly_progression(week)
        out.append(by_week[week])
    return out


def assemble_plan(
    profile: UserProfile,
    goal: Goal,
    strategy: PlanStrategy,
    templates: Sequence[SessionTemplate],
    sessions: Sequence[Sequence[ScoredCandidate]],
    progressions: Sequence[WeeklyProgression],
    pool: Sequence[ScoredCandidate],
    start_date: dt.date,
) -> Plan:
    """
    templates[i] / sessions[i] / progressions[i] cùng thuộc buổi có day_index = i.
    """
    if not (len(templates) == len(sessions) == len(progressions)):
        raise ValueError("templates, sessions, progressions phải cùng độ dài")

    spw = goal.sessions_per_week
    scheduler = PeriodizationScheduler(strategy.periodization_config)
    total_weeks = strategy.periodization_config.total_weeks

    days: List[PlanDay] = []
    for i, (template, selected, progression) in enumerate(zip(templates, sessions, progressions)):
        days.append(
            build_plan_day(i, template, selected, profile, strategy, progression, start_date, spw)
        )

    underfilled = sum(1 for d in days if len(d.items) < d.exercise_count_target)
    end_date = days[-1].scheduled_date if days else start_date

    return Plan(
        title=build_plan_title(profile, goal, total_weeks),
        description=build_plan_description(profile, goal, total_weeks, strategy.session_structure.strategy),
        objective=goal.objective,
        fitness_level=profile.fitness_level,
        total_weeks=total_weeks,
        sessions_per_week=spw,
        start_date=start_date,
        end_date=end_date,
        days=days,
        metadata=build_plan_metadata(strategy, templates, pool, scheduler, underfilled),
    )
