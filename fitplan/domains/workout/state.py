from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fitplan.core.state import BaseGraphState, BaseResult, generate_request_id, new_audit
from fitplan.domains.workout.schemas import (
    Goal,
    Plan,
    PlanStrategy,
    ScoredCandidate,
    SessionTemplate,
    UserProfile,
    WeeklyProgression,
)
from fitplan.domains.workout.services.retrieval import PatternQuery


class PlanGraphState(BaseGraphState, total=False):
    """State của plan generation graph"""
    profile: Optional[UserProfile]
    goal: Optional[Goal]
    notes: Optional[str]
    start_date: dt.date
    total_weeks: Optional[int]
    strategy: Optional[PlanStrategy]
    queries: List[PatternQuery]
    candidates: List[ScoredCandidate]
    pool: List[ScoredCandidate]
    templates: List[SessionTemplate]
    sessions: List[List[ScoredCandidate]]
    progressions: List[WeeklyProgression]
    plan: Optional[Plan]


@dataclass
class PlanGenerationResult(BaseResult):
    plan: Optional[Plan] = None
    strategy: Optional[PlanStrategy] = None
    candidate_count: int = 0
    pool_size: int = 0


def init_plan_state(
    *,
    raw_input: Optional[Dict[str, Any]] = None,
    profile: Optional[UserProfile] = None,
    goal: Optional[Goal] = None,
    notes: Optional[str] = None,
    start_date: Optional[dt.date] = None,
    total_weeks: Optional[int] = None,
) -> PlanGraphState:
    return PlanGraphState(
        request_id=generate_request_id(),
        raw_input=raw_input or {},
        profile=profile,
        goal=goal,
        notes=notes,
        start_date=start_date or dt.date.today(),
        total_weeks=total_weeks,
        strategy=None,
        queries=[],
        candidates=[],
        pool=[],
        templates=[],
        sessions=[],
        progressions=[],
        plan=None,
        issues=[],
        warnings=[],
        audit=new_audit(),
    )


def to_plan_result(state: PlanGraphState) -> PlanGenerationResult:
    return PlanGenerationResult(
        request_id=state["request_id"],
        plan=state.get("plan"),
        strategy=state.get("strategy"),
        candidate_count=len(state.get("candidates") or []),
        pool_size=len(state.get("pool") or []),
        issues=list(state.get("issues") or []),
        warnings=list(state.get("warnings") or []),
        audit=state.get("audit") or new_audit(),
    )
