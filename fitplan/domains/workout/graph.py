from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Optional

from langgraph.graph import END, START, StateGraph

from fitplan.core.audit import append_event
from fitplan.core.execution import GraphExecutor
from fitplan.domains.workout.exceptions import NoSuitableExercisesError, PlanGenerationError
from fitplan.domains.workout.nodes import PlanNodes, route_after_scoring
from fitplan.domains.workout.ports import (
    ExerciseCatalog,
    HealthClassifier,
    PlanStore,
    SemanticRetrievalService,
)
from fitplan.domains.workout.schemas import Goal, Plan, UserProfile
from fitplan.domains.workout.state import (
    PlanGenerationResult,
    PlanGraphState,
    init_plan_state,
    to_plan_result,
)
from fitplan.shared.settings import EngineConfig


def build_plan_graph(nodes: PlanNodes) -> Any:
    """Build plan generation graph (LangGraph StateGraph) trên 1 bộ collaborators."""
    builder = StateGraph(PlanGraphState)

    builder.add_node("normalize", nodes.node_normalize)
    builder.add_node("analyze_strategy", nodes.node_strategy)
    builder.add_node("retrieve", nodes.node_retrieval)
    builder.add_node("score", nodes.node_scoring)
    builder.add_node("compose", nodes.node_composition)
    builder.add_node("periodize", nodes.node_periodization)
    builder.add_node("prescribe", nodes.node_prescription)

    builder.add_edge(START, "normalize")
    builder.add_edge("normalize", "analyze_strategy")
    builder.add_edge("analyze_strategy", "retrieve")
    builder.add_edge("retrieve", "score")

    # Pool rỗng -> END (caller nhận issue no_suitable_exercises)
    builder.add_conditional_edges(
        "score",
        route_after_scoring,
        {
            "compose": "compose",
            "end": END,
        },
    )
    builder.add_edge("compose", "periodize")
    builder.add_edge("periodize", "prescribe")
    builder.add_edge("prescribe", END)

    return builder.compile()


class PlanGenerator:
    """
    Entry point của engine. Mỗi instance giữ collaborators + compiled graph của riêng nó;
    mỗi lần run có state riêng nên chạy song song nhiều request được.
    """

    def __init__(
        self,
        retrieval: SemanticRetrievalService,
        catalog: ExerciseCatalog,
        classifier: Optional[HealthClassifier] = None,
        store: Optional[PlanStore] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.store = store
        self.nodes = PlanNodes(retrieval, catalog, classifier=classifier, config=config)
        self.graph = build_plan_graph(self.nodes)

    def _execute(self, init_state: PlanGraphState) -> PlanGenerationResult:
        init_state["audit"] = append_event(
            init_state["audit"],
            "pipeline_start",
            {"request_id": init_state["request_id"]},
        )
        return GraphExecutor.execute(self.graph, init_state, to_plan_result)

    def run(
        self,
        profile: UserProfile,
        goal: Goal,
        notes: Optional[str] = None,
        start_date: Optional[dt.date] = None,
        total_weeks: Optional[int] = None,
    ) -> PlanGenerationResult:
        """Không raise khi pool rỗng: result.plan = None, issue nằm trong result.issues."""
        return self._execute(
            init_plan_state(
                profile=profile,
                goal=goal,
                notes=notes,
                start_date=start_date,
                total_weeks=total_weeks,
            )
        )

    def run_raw(self, raw_input: Dict[str, Any], start_date: Optional[dt.date] = None) -> PlanGenerationResult:
        """Request thô (dict) -> normalize trong graph -> result."""
        return self._execute(init_plan_state(raw_input=raw_input, start_date=start_date))

    def generate_plan(
        self,
        profile: UserProfile,
        goal: Goal,
        notes: Optional[str] = None,
        start_date: Optional[dt.date] = None,
        total_weeks: Optional[int] = None,
    ) -> Plan:
        result = self.run(profile, goal, notes, start_date=start_date, total_weeks=total_weeks)
        plan = raise_for_result(result)
        if self.store is not None:
            self.store.save_plan(plan)
        return plan


def raise_for_result(result: PlanGenerationResult) -> Plan:
    if result.plan is not None:
        return result.plan

    for issue in result.issues:
        if issue.get("error_type") == NoSuitableExercisesError.error_type:
            raise NoSuitableExercisesError(issue.get("message") or "", issue.get("details"))
    raise PlanGenerationError("Plan generation produced no plan", {"issues": result.issues})


def generate_plan(
    profile: UserProfile,
    goal: Goal,
    notes: Optional[str] = None,
    *,
    retrieval: SemanticRetrievalService,
    catalog: ExerciseCatalog,
    classifier: Optional[HealthClassifier] = None,
    store: Optional[PlanStore] = None,
    config: Optional[EngineConfig] = None,
    start_date: Optional[dt.date] = None,
) -> Plan:
    generator = PlanGenerator(retrieval, catalog, classifier=classifier, store=store, config=config)
    return generator.generate_plan(profile, goal, notes, start_date=start_date)


def build_plan_generator_from_env(store: Optional[PlanStore] = None) -> PlanGenerator:
    """Wiring production: pgvector retrieval + Django catalog (+ LLM health classifier nếu bật)."""
    from fitplan.services.retriever import DjangoExerciseCatalog, PgVectorRetrievalService
    from fitplan.shared.llm import LLMClient, LLMConfig
    from fitplan.domains.workout.services.health import LLMHealthClassifier

    config = EngineConfig.from_env()
    classifier: Optional[HealthClassifier] = None
    if config.use_llm_health_analysis:
        llm_cfg = LLMConfig.from_env()
        if llm_cfg.has_credentials():
            classifier = LLMHealthClassifier(LLMClient(llm_cfg))
        else:
            print("[PIPELINE] LLM health analysis enabled but no credentials, using rules")

    return PlanGenerator(
        PgVectorRetrievalService(),
        DjangoExerciseCatalog(),
        classifier=classifier,
        store=store,
        config=config,
    )
