from __future__ import annotations

from typing import Any, List, Optional, Sequence

from fitplan.domains.workout.ports import SearchHit
from fitplan.domains.workout.schemas import ExerciseRecord
from fitplan.services.embedding_service import EmbeddingClient

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def distance_to_similarity(distance: Any) -> float:
    """CosineDistance (0..2, càng nhỏ càng gần) -> similarity trong [0, 1]."""
    try:
        d = float(distance)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(1.0, 1.0 - d))


def _clamp_limit(k: Any) -> int:
    try:
        k_int = int(k)
    except (TypeError, ValueError):
        k_int = DEFAULT_LIMIT
    return max(1, min(k_int, MAX_LIMIT))


def exercise_to_record(obj: Any) -> ExerciseRecord:
    return ExerciseRecord(
        id=obj.id,
        name=obj.name,
        primary_muscle=obj.primary_muscle or "",
        secondary_muscles=list(obj.secondary_muscles or []),
        equipment=obj.equipment or "",
        body_part=obj.body_part or "",
        category=obj.category or "",
        exercise_type=obj.exercise_type or "",
        difficulty_level=obj.difficulty_level or 3,
        instructions=obj.instructions or [],
        safety_notes=obj.safety_notes or "",
        tags=list(obj.tags or []),
    )


class PgVectorRetrievalService:
    """SemanticRetrievalService trên Postgres + pgvector (cosine)."""

    def __init__(self, embedder: Optional[EmbeddingClient] = None) -> None:
        self.embedder = embedder or EmbeddingClient()

    def search(self, query: str, k: int, similarity_threshold: float) -> List[SearchHit]:
        from pgvector.django import CosineDistance

        from fitplan.models import Exercise

        q = (query or "").strip()
        if not q:
            return []

        qvec = self.embedder.embed_query(q)
        max_distance = 1.0 - float(similarity_threshold)
        qs = (
            Exercise.objects.filter(is_deleted=False)
            .exclude(embedding__isnull=True)
            .annotate(distance=CosineDistance("embedding", qvec))
            .filter(distance__lt=max_distance)
            .order_by("distance")
        )
        return [
            SearchHit(exercise_id=str(ex.id), similarity=distance_to_similarity(ex.distance))
            for ex in qs[: _clamp_limit(k)]
        ]


class DjangoExerciseCatalog:
    """ExerciseCatalog đọc từ Exercise model, bỏ bản ghi soft-deleted."""

    def get_by_ids(self, ids: Sequence[str]) -> List[ExerciseRecord]:
        int_ids: List[int] = []
        for x in ids:
            try:
                int_ids.append(int(x))
            except (TypeError, ValueError):
                continue
        if not int_ids:
            return []

        from fitplan.models import Exercise

        return [exercise_to_record(ex) for ex in Exercise.objects.filter(id__in=int_ids, is_deleted=False)]
