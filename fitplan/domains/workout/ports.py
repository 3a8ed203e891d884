from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from typing_extensions import Protocol

from fitplan.domains.workout.schemas import ExerciseRecord, Plan


@dataclass(frozen=True)
class SearchHit:
    exercise_id: str
    similarity: float


class SemanticRetrievalService(Protocol):
    """text query -> id + similarity, giảm dần theo similarity, đã lọc > threshold."""

    def search(self, query: str, k: int, similarity_threshold: float) -> List[SearchHit]:
        ...


class ExerciseCatalog(Protocol):
    """ids -> ExerciseRecord (bỏ bản ghi soft-deleted). Thứ tự không đảm bảo."""

    def get_by_ids(self, ids: Sequence[str]) -> List[ExerciseRecord]:
        ...


class HealthClassifier(Protocol):
    """Free-text health note -> list entry thô (chưa validate)."""

    def classify(self, text: str) -> List[Dict[str, Any]]:
        ...


class PlanStore(Protocol):
    def save_plan(self, plan: Plan) -> Any:
        ...
