# fitplan/domains/workout/contract.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple


# ============================================================
# Taxonomy / Enums (single source of truth)
# ============================================================

FITNESS_LEVEL_ENUM: Tuple[str, ...] = ("BEGINNER", "INTERMEDIATE", "ADVANCED")
FITNESS_LEVEL_SET = set(FITNESS_LEVEL_ENUM)

OBJECTIVE_ENUM: Tuple[str, ...] = ("LOSE_FAT", "GAIN_MUSCLE", "ENDURANCE", "MAINTAIN")
OBJECTIVE_SET = set(OBJECTIVE_ENUM)

GENDER_ENUM: Tuple[str, ...] = ("MALE", "FEMALE", "OTHER")

MOVEMENT_PATTERN_ENUM: Tuple[str, ...] = (
    "squat",
    "hinge",
    "lunge",
    "push_vertical",
    "push_horizontal",
    "pull_vertical",
    "pull_horizontal",
    "carry",
    "core",
    "rotation",
    "gait",
    "cardio",
)
MOVEMENT_PATTERN_SET = set(MOVEMENT_PATTERN_ENUM)

SESSION_TYPE_ENUM: Tuple[str, ...] = (
    "full_body",
    "full_body_varied",
    "upper_lower",
    "body_part_split",
)

CONSIDERATION_TYPE_ENUM: Tuple[str, ...] = (
    "joint_limitation",
    "injury_history",
    "mobility_issue",
)
CONSIDERATION_TYPE_SET = set(CONSIDERATION_TYPE_ENUM)

# Closed vocabulary: tag ngoài danh sách này là output không hợp lệ
RESTRICTION_TAGS: Tuple[str, ...] = (
    "high_impact",
    "deep_squat",
    "heavy_loading",
    "spinal_flexion",
    "overhead",
    "internal_rotation",
    "jumping",
    "running",
    "push_up",
    "heavy_pressing",
    "hyperextension",
    "heavy_shrugs",
    "awkward_positions",
)
RESTRICTION_TAG_SET = set(RESTRICTION_TAGS)

MODIFICATION_TAGS: Tuple[str, ...] = (
    "partial_range",
    "low_impact_alternatives",
    "neutral_spine",
    "core_focus",
    "reduced_range",
    "stability_focus",
    "controlled_range",
    "shallow_squat",
    "low_impact",
    "balance_training",
    "neutral_grip",
    "wrist_support",
    "neutral_position",
    "mobility_focus",
    "supportive_bracing",
)
MODIFICATION_TAG_SET = set(MODIFICATION_TAGS)

# Restriction -> keyword (substring, case-insensitive) trên name/instructions.
# heavy_loading không có keyword: không suy ra được từ text của bài tập.
RESTRICTION_KEYWORDS: Mapping[str, Tuple[str, ...]] = {
    "high_impact": ("jump", "plyometric", "run"),
    "deep_squat": ("deep squat", "full squat"),
    "heavy_loading": (),
    "spinal_flexion": ("crunch", "sit-up"),
    "overhead": ("overhead", "military press"),
    "internal_rotation": ("internal rotation",),
    "jumping": ("jump",),
    "running": ("run",),
    "push_up": ("push-up",),
    "heavy_pressing": ("press",),
    "hyperextension": ("hyperextension",),
    "heavy_shrugs": ("shrug",),
    "awkward_positions": ("awkward",),
}

assert set(RESTRICTION_KEYWORDS) == RESTRICTION_TAG_SET, "RESTRICTION_KEYWORDS lệch RESTRICTION_TAGS"

EQUIPMENT_PREFERENCE_ENUM: Tuple[str, ...] = ("bodyweight", "home_workout", "gym")
EQUIPMENT_PREFERENCE_SET = set(EQUIPMENT_PREFERENCE_ENUM)

# Canonicalization aliases (apply BEFORE strict validation)
EQUIPMENT_PREFERENCE_ALIASES = {
    "body_weight": "bodyweight",
    "body weight": "bodyweight",
    "no equipment": "bodyweight",
    "none": "bodyweight",
    "home": "home_workout",
    "home workout": "home_workout",
    "commercial_gym": "gym",
}

# Preference -> equipment codes chấp nhận. None = mọi thiết bị trừ body_weight.
EQUIPMENT_BY_PREFERENCE: Mapping[str, Optional[Tuple[str, ...]]] = {
    "bodyweight": ("body_weight",),
    "home_workout": ("body_weight", "dumbbell", "resistance_band"),
    "gym": None,
}

BODYWEIGHT_EQUIPMENT = "body_weight"


# ============================================================
# Helpers
# ============================================================

def _norm(s: Any) -> str:
    return str(s or "").strip().lower()


def canonicalize_equipment_preference(pref: str) -> str:
    p = _norm(pref)
    return EQUIPMENT_PREFERENCE_ALIASES.get(p, p)


def canonicalize_equipment_code(code: str) -> str:
    """'Body Weight' / 'body-weight' -> 'body_weight'."""
    return _norm(code).replace("-", "_").replace(" ", "_")


def is_valid_equipment_preference(pref: str) -> bool:
    return canonicalize_equipment_preference(pref) in EQUIPMENT_PREFERENCE_SET


def is_valid_restriction(tag: str) -> bool:
    return _norm(tag) in RESTRICTION_TAG_SET


def is_valid_modification(tag: str) -> bool:
    return _norm(tag) in MODIFICATION_TAG_SET


def is_valid_consideration_type(kind: str) -> bool:
    return _norm(kind) in CONSIDERATION_TYPE_SET


# ============================================================
# Validation for classifier output → HealthConsideration
# ============================================================

def validate_health_consideration(item: Any) -> List[str]:
    """
    Validate 1 entry thô (dict) trước khi nhận vào pipeline.
    Trả về list lỗi; tag sai được báo riêng để caller quyết định bỏ tag hay bỏ cả entry.
    """
    if not isinstance(item, Mapping):
        return ["consideration phải là object."]

    errors: List[str] = []
    kind = item.get("type")
    if not is_valid_consideration_type(kind):
        errors.append(
            f"type không hợp lệ (={kind}). Chỉ được dùng: {list(CONSIDERATION_TYPE_ENUM)}"
        )

    if not _norm(item.get("affected_area")):
        errors.append("affected_area không được rỗng.")

    for field_name, is_valid in (("restrictions", is_valid_restriction), ("modifications", is_valid_modification)):
        tags = item.get(field_name) or []
        if not isinstance(tags, (list, tuple, set)):
            errors.append(f"{field_name} phải là danh sách.")
            continue
        for i, tag in enumerate(tags):
            if not is_valid(tag):
                errors.append(f"{field_name}[{i}] ngoài vocabulary (={tag}).")

    return errors


def split_valid_tags(tags: Any, allowed: set) -> Tuple[List[str], List[str]]:
    """Tách tag hợp lệ / không hợp lệ, giữ thứ tự, bỏ trùng."""
    valid: List[str] = []
    invalid: List[str] = []
    if not isinstance(tags, (list, tuple, set)):
        return valid, invalid
    for tag in tags:
        t = _norm(tag)
        if t in allowed:
            if t not in valid:
                valid.append(t)
        else:
            invalid.append(str(tag))
    return valid, invalid


def summarize_vocabulary() -> Dict[str, List[str]]:
    """Vocabulary dạng dict, dùng để nhúng vào prompt của classifier."""
    return {
        "types": list(CONSIDERATION_TYPE_ENUM),
        "restrictions": list(RESTRICTION_TAGS),
        "modifications": list(MODIFICATION_TAGS),
    }
