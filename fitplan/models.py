from django.db import models
from pgvector.django import HnswIndex, VectorField


class Exercise(models.Model):
    """Exercise catalog: engine chỉ đọc, bản ghi soft-deleted bị loại khỏi retrieval."""

    name = models.CharField(max_length=255)
    primary_muscle = models.CharField(max_length=64, blank=True, default="")
    secondary_muscles = models.JSONField(default=list, blank=True)
    equipment = models.CharField(max_length=64, blank=True, default="")
    body_part = models.CharField(max_length=64, blank=True, default="")
    category = models.CharField(max_length=64, blank=True, default="")
    exercise_type = models.CharField(max_length=32, blank=True, default="")
    difficulty_level = models.PositiveSmallIntegerField(default=3)
    instructions = models.JSONField(default=list, blank=True)
    safety_notes = models.TextField(blank=True, default="")
    tags = models.JSONField(default=list, blank=True)

    # Embedding fields
    embedding = VectorField(dimensions=1536, null=True, blank=True)
    embedding_text = models.TextField(blank=True, default="")
    embedding_model = models.CharField(
        max_length=64,
        blank=True,
        default="text-embedding-3-small@1536",
    )

    is_deleted = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "fitplan"
        indexes = [
            HnswIndex(
                name="fp_ex_emb_hnsw",
                fields=["embedding"],
                m=16,
                ef_construction=64,
                opclasses=["vector_cosine_ops"],
            )
        ]

    def __str__(self) -> str:
        return self.name
