from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from fitplan.domains.workout.contract import canonicalize_equipment_preference, is_valid_equipment_preference
from fitplan.domains.workout.schemas import Goal, UserProfile


def _split_csv(s: str) -> List[str]:
    return [x.strip().lower() for x in (s or "").split(",") if x.strip()]


def _maybe_float(v: Any) -> Optional[float]:
    if v is None:
        return None
    if isinstance(v, (int, float)):
        return float(v)
    s = str(v).strip()
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def _maybe_int(v: Any) -> Optional[int]:
    if v is None:
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v)
    s = str(v).strip()
    if not s:
        return None
    try:
        return int(float(s))
    except ValueError:
        return None


def _enum_token(v: Any) -> Optional[str]:
    s = str(v or "").strip().upper().replace(" ", "_").replace("-", "_")
    return s or None


def _require(value: Any, name: str) -> Any:
    if value is None:
        raise ValueError(f"{name} is required")
    return value


def _equipment_list(raw: Any) -> List[str]:
    items = raw if isinstance(raw, (list, tuple)) else _split_csv(str(raw or ""))
    out: List[str] = []
    for x in items:
        if not is_valid_equipment_preference(x):
            continue
        c = canonicalize_equipment_preference(x)
        if c not in out:
            out.append(c)
    return out


def normalize_plan_request(raw: Dict[str, Any]) -> Tuple[UserProfile, Goal, Optional[str]]:
    """
    Request thô (form / JSON) -> (UserProfile, Goal, notes).
    Bắt buộc:
      - age, gender, height_cm, weight_kg, fitness_level
      - objective, sessions_per_week, session_minutes
    Optional:
      - health_note, bmi, equipment (CSV hoặc list), notes
    Chấp nhận tên field cũ: days_per_week, height, weight, experience, goal.
    """
    profile = UserProfile(
        age=_require(_maybe_int(raw.get("age")), "age"),
        gender=_require(_enum_token(raw.get("gender") or raw.get("sex")), "gender"),
        height_cm=_require(_maybe_float(raw.get("height_cm") or raw.get("height")), "height_cm"),
        weight_kg=_require(_maybe_float(raw.get("weight_kg") or raw.get("weight")), "weight_kg"),
        bmi=_maybe_float(raw.get("bmi")),
        fitness_level=_require(_enum_token(raw.get("fitness_level") or raw.get("experience")), "fitness_level"),
        health_note=(str(raw.get("health_note") or "").strip() or None),
    )

    goal = Goal(
        objective=_require(_enum_token(raw.get("objective") or raw.get("goal")), "objective"),
        sessions_per_week=_require(
            _maybe_int(raw.get("sessions_per_week") or raw.get("days_per_week")), "sessions_per_week"
        ),
        session_minutes=_require(_maybe_int(raw.get("session_minutes")), "session_minutes"),
        equipment_preferences=_equipment_list(raw.get("equipment_preferences") or raw.get("equipment")),
    )

    notes = str(raw.get("notes") or "").strip() or None
    return profile, goal, notes
