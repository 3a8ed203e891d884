from __future__ import annotations

from typing import Any, Dict, Optional


class PlanGenerationError(Exception):
    """Base error của workout plan engine."""

    error_type = "plan_generation_failed"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_issue(self) -> Dict[str, Any]:
        return {"error_type": self.error_type, "message": self.message, "details": self.details}


class NoSuitableExercisesError(PlanGenerationError):
    """Candidate pool rỗng sau retrieval + filter: không sinh plan rỗng."""

    error_type = "no_suitable_exercises"
