from __future__ import annotations

from typing import Any, Dict, Optional

from fitplan.core.audit import append_event
from fitplan.domains.workout.exceptions import NoSuitableExercisesError
from fitplan.domains.workout.ports import ExerciseCatalog, HealthClassifier, SemanticRetrievalService
from fitplan.domains.workout.state import PlanGraphState
from fitplan.domains.workout.services.composition import compose_sessions
from fitplan.domains.workout.services.evaluation import evaluate_plan
from fitplan.domains.workout.services.planning import assemble_plan, schedule_progressions
from fitplan.domains.workout.services.profile import normalize_plan_request
from fitplan.domains.workout.services.retrieval import build_pattern_queries, retrieve_candidates
from fitplan.domains.workout.services.scoring import score_candidates
from fitplan.domains.workout.services.splits import build_session_templates
from fitplan.domains.workout.services.strategy import analyze_strategy, suggest_weeks
from fitplan.shared.settings import EngineConfig


class PlanNodes:
    """
    Graph nodes của plan generation, collaborators inject qua constructor.
    Mỗi node trả partial state + audit event.
    """

    def __init__(
        self,
        retrieval: SemanticRetrievalService,
        catalog: ExerciseCatalog,
        classifier: Optional[HealthClassifier] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.retrieval = retrieval
        self.catalog = catalog
        self.classifier = classifier
        self.config = config or EngineConfig()

    def node_normalize(self, state: PlanGraphState) -> Dict[str, Any]:
        # Skip nếu caller đã truyền model sẵn (node vẫn phải trả ít nhất 1 key)
        if state.get("profile") is not None and state.get("goal") is not None:
            return {"notes": state.get("notes")}

        profile, goal, notes = normalize_plan_request(state.get("raw_input") or {})
        audit = append_event(state["audit"], "normalize_done", {"fitness_level": profile.fitness_level.value})
        return {"profile": profile, "goal": goal, "notes": notes, "audit": audit}

    def node_strategy(self, state: PlanGraphState) -> Dict[str, Any]:
        profile, goal = state["profile"], state["goal"]
        weeks = state.get("total_weeks") or suggest_weeks(profile, goal)
        strategy = analyze_strategy(
            profile,
            goal,
            state.get("notes"),
            total_weeks=weeks,
            classifier=self.classifier,
        )
        audit = append_event(
            state["audit"],
            "strategy_done",
            {
                "session_structure": strategy.session_structure.type.value,
                "intensity_level": strategy.intensity_level.level,
                "total_weeks": weeks,
                "considerations": strategy.affected_areas(),
            },
        )
        return {"strategy": strategy, "total_weeks": weeks, "audit": audit}

    def node_retrieval(self, state: PlanGraphState) -> Dict[str, Any]:
        queries = build_pattern_queries(state["strategy"])
        candidates = retrieve_candidates(
            queries,
            self.retrieval,
            self.catalog,
            similarity_threshold=self.config.similarity_threshold,
            max_workers=self.config.retrieval_workers,
        )
        print("[PIPELINE] candidate_count:", len(candidates))
        audit = append_event(
            state["audit"],
            "retrieval_done",
            {"patterns": [q.pattern.value for q in queries], "candidate_count": len(candidates)},
        )
        return {"queries": queries, "candidates": candidates, "audit": audit}

    def node_scoring(self, state: PlanGraphState) -> Dict[str, Any]:
        pool = score_candidates(state.get("candidates") or [], state["strategy"])
        print("[PIPELINE] pool_size:", len(pool))
        print("[PIPELINE] pool_sample_ids:", [c.exercise.id for c in pool[:10]])

        audit = append_event(state["audit"], "scoring_done", {"pool_size": len(pool)})
        if pool:
            return {"pool": pool, "audit": audit}

        err = NoSuitableExercisesError(
            "No suitable exercises found for this profile and goal",
            {"candidate_count": len(state.get("candidates") or [])},
        )
        issues = list(state.get("issues") or [])
        issues.append(err.to_issue())
        audit = append_event(audit, "no_suitable_exercises", err.details)
        return {"pool": pool, "issues": issues, "audit": audit}

    def node_composition(self, state: PlanGraphState) -> Dict[str, Any]:
        goal = state["goal"]
        total_sessions = goal.sessions_per_week * state["total_weeks"]
        templates = build_session_templates(state["strategy"], total_sessions)
        sessions = compose_sessions(templates, state["pool"])

        underfilled = sum(1 for t, s in zip(templates, sessions) if len(s) < t.exercise_count)
        print(f"[PIPELINE] sessions={len(sessions)} underfilled={underfilled}")
        audit = append_event(
            state["audit"],
            "composition_done",
            {"sessions": len(sessions), "underfilled": underfilled},
        )
        return {"templates": templates, "sessions": sessions, "audit": audit}

    def node_periodization(self, state: PlanGraphState) -> Dict[str, Any]:
        progressions = schedule_progressions(
            state["strategy"],
            len(state["sessions"]),
            state["goal"].sessions_per_week,
        )
        deload_weeks = sorted({p.week for p in progressions if p.is_deload_week})
        audit = append_event(state["audit"], "periodization_done", {"deload_weeks": deload_weeks})
        return {"progressions": progressions, "audit": audit}

    def node_prescription(self, state: PlanGraphState) -> Dict[str, Any]:
        goal = state["goal"]
        plan = assemble_plan(
            state["profile"],
            goal,
            state["strategy"],
            state["templates"],
            state["sessions"],
            state["progressions"],
            state["pool"],
            state["start_date"],
        )

        report = evaluate_plan(plan, goal)
        warnings = list(state.get("warnings") or []) + report["warnings"]
        issues = list(state.get("issues") or []) + report["issues"]
        plan = plan.model_copy(update={"warnings": report["warnings"]})

        audit = append_event(
            state["audit"],
            "prescription_done",
            {"days": len(plan.days), "issues": len(report["issues"]), "warnings": len(report["warnings"])},
        )
        return {"plan": plan, "warnings": warnings, "issues": issues, "audit": audit}


def route_after_scoring(state: PlanGraphState) -> str:
    """Pool rỗng -> kết thúc sớm, không sinh plan rỗng."""
    return "compose" if state.get("pool") else "end"
