from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from fitplan.domains.workout.contract import (
    MODIFICATION_TAG_SET,
    RESTRICTION_TAG_SET,
    is_valid_consideration_type,
    split_valid_tags,
    summarize_vocabulary,
    validate_health_consideration,
)
from fitplan.domains.workout.ports import HealthClassifier
from fitplan.domains.workout.schemas import HealthClassification, HealthConsideration, UserProfile


@dataclass(frozen=True)
class HealthRule:
    keyword: str
    affected_area: str
    type: str
    restrictions: Tuple[str, ...]
    modifications: Tuple[str, ...]


# Rule-based fallback: 1 keyword body part -> 1 consideration cố định
HEALTH_RULES: Tuple[HealthRule, ...] = (
    HealthRule("knee", "knee", "injury_history", ("high_impact", "deep_squat"), ("partial_range", "low_impact_alternatives")),
    HealthRule("back", "spine", "joint_limitation", ("heavy_loading", "spinal_flexion"), ("neutral_spine", "core_focus")),
    HealthRule("shoulder", "shoulder", "injury_history", ("overhead", "internal_rotation"), ("reduced_range", "stability_focus")),
    HealthRule("hip", "hip", "mobility_issue", ("deep_squat", "high_impact"), ("shallow_squat", "controlled_range")),
    HealthRule("ankle", "ankle", "injury_history", ("jumping", "running"), ("low_impact", "balance_training")),
    HealthRule("wrist", "wrist", "injury_history", ("push_up", "heavy_pressing"), ("neutral_grip", "wrist_support")),
    HealthRule("neck", "neck", "mobility_issue", ("heavy_shrugs", "awkward_positions"), ("neutral_position", "mobility_focus")),
    HealthRule("elbow", "elbow", "injury_history", ("heavy_pressing", "hyperextension"), ("controlled_range", "supportive_bracing")),
)


def _mentions(text: str, keyword: str) -> bool:
    # prefix word match: "knees", "shoulders" vẫn tính
    return re.search(rf"\b{re.escape(keyword)}", text) is not None


def collect_health_text(profile: UserProfile, notes: Optional[str] = None) -> str:
    parts = [profile.health_note or "", notes or ""]
    return " ".join(p.strip() for p in parts if p and p.strip())


def analyze_with_rules(text: str) -> List[HealthConsideration]:
    lowered = (text or "").lower()
    if not lowered.strip():
        return []

    out: List[HealthConsideration] = []
    for rule in HEALTH_RULES:
        if not _mentions(lowered, rule.keyword):
            continue
        out.append(
            HealthConsideration(
                type=rule.type,
                affected_area=rule.affected_area,
                restrictions=list(rule.restrictions),
                modifications=list(rule.modifications),
            )
        )
    return out


def sanitize_considerations(raw_items: Any) -> List[HealthConsideration]:
    """
    Nhận output thô của classifier:
      - tag ngoài vocabulary: bỏ từng tag
      - type sai / affected_area rỗng / không còn tag hợp lệ nào: bỏ cả entry
    Không bao giờ raise: output xấu chỉ làm list ngắn lại.
    """
    if not isinstance(raw_items, list):
        return []

    out: List[HealthConsideration] = []
    for i, item in enumerate(raw_items):
        if hasattr(item, "model_dump"):
            item = item.model_dump()
        if not isinstance(item, dict):
            print(f"[HEALTH] drop considerations[{i}]: not an object")
            continue

        errors = validate_health_consideration(item)
        if errors:
            print(f"[HEALTH] considerations[{i}] errors: {errors}")

        kind = str(item.get("type") or "").strip().lower()
        area = str(item.get("affected_area") or "").strip().lower()
        if not is_valid_consideration_type(kind) or not area:
            print(f"[HEALTH] drop considerations[{i}]: type={kind!r} area={area!r}")
            continue

        restrictions, _ = split_valid_tags(item.get("restrictions"), RESTRICTION_TAG_SET)
        modifications, _ = split_valid_tags(item.get("modifications"), MODIFICATION_TAG_SET)
        if not restrictions and not modifications:
            continue

        try:
            out.append(
                HealthConsideration(
                    type=kind,
                    affected_area=area,
                    restrictions=restrictions,
                    modifications=modifications,
                )
            )
        except ValidationError as e:
            print(f"[HEALTH] drop considerations[{i}]: {e}")
    return out


def analyze_health_considerations(
    profile: UserProfile,
    notes: Optional[str] = None,
    classifier: Optional[HealthClassifier] = None,
) -> List[HealthConsideration]:
    """
    Free-text health note -> HealthConsideration (closed vocabulary).
    Có classifier thì thử trước; lỗi hoặc kết quả rỗng sau sanitize -> rule-based.
    """
    text = collect_health_text(profile, notes)
    if not text:
        return []

    if classifier is not None:
        try:
            considerations = sanitize_considerations(classifier.classify(text))
            if considerations:
                return considerations
            print("[HEALTH] classifier returned no valid considerations, fallback to rules")
        except Exception as e:
            print(f"[HEALTH] classifier error: {e}, fallback to rules")

    return analyze_with_rules(text)


# ============================================================
# LLM-backed classifier
# ============================================================

def build_health_prompt(text: str) -> str:
    vocab = summarize_vocabulary()
    return (
        "Bạn là trợ lý phân tích ghi chú sức khoẻ cho huấn luyện thể lực.\n"
        "Trích xuất các vấn đề khớp/chấn thương từ ghi chú dưới đây.\n"
        "Mỗi vấn đề gồm: type, affected_area (knee, spine, shoulder, hip, ankle, wrist, neck, elbow...),\n"
        "restrictions và modifications.\n"
        "CHỈ dùng giá trị trong vocabulary sau, không tự đặt tag mới:\n"
        f"{json.dumps(vocab, ensure_ascii=False)}\n"
        "Nếu ghi chú không nhắc vấn đề nào, trả về considerations rỗng.\n\n"
        f"Ghi chú: {text}"
    )


class LLMHealthClassifier:
    """HealthClassifier dùng shared LLMClient (structured output)."""

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    def classify(self, text: str) -> List[Dict[str, Any]]:
        result = self.llm.generate_structured(build_health_prompt(text), HealthClassification)
        return list((result or {}).get("considerations") or [])
