from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    similarity_threshold: float = 0.3
    retrieval_workers: int = 4
    use_llm_health_analysis: bool = False

    @staticmethod
    def from_env() -> "EngineConfig":
        return EngineConfig(
            similarity_threshold=float(os.getenv("FITPLAN_SIMILARITY_THRESHOLD") or 0.3),
            retrieval_workers=int(os.getenv("FITPLAN_RETRIEVAL_WORKERS") or 4),
            use_llm_health_analysis=_env_bool("FITPLAN_LLM_HEALTH_ANALYSIS"),
        )
