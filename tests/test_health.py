from unittest.mock import MagicMock

from fitplan.domains.workout.contract import MODIFICATION_TAG_SET, RESTRICTION_TAG_SET
from fitplan.domains.workout.schemas import ConsiderationType, HealthClassification
from fitplan.domains.workout.services.health import (
    LLMHealthClassifier,
    analyze_health_considerations,
    analyze_with_rules,
    build_health_prompt,
    sanitize_considerations,
)


class StaticClassifier:
    def __init__(self, output):
        self.output = output
        self.calls = []

    def classify(self, text):
        self.calls.append(text)
        return self.output


class BrokenClassifier:
    def classify(self, text):
        raise TimeoutError("LLM timeout")


def test_empty_note_has_no_considerations(make_profile):
    assert analyze_health_considerations(make_profile(health_note=None)) == []
    assert analyze_health_considerations(make_profile(health_note="   ")) == []


def test_rules_follow_table_order():
    out = analyze_with_rules("Lower back stiffness and knee pain")

    assert [c.affected_area for c in out] == ["knee", "spine"]
    knee = out[0]
    assert knee.type == ConsiderationType.injury_history
    assert knee.restrictions == ["high_impact", "deep_squat"]
    assert knee.modifications == ["partial_range", "low_impact_alternatives"]


def test_rules_match_plural_words():
    out = analyze_with_rules("Both knees hurt, shoulders are fine")
    assert [c.affected_area for c in out] == ["knee", "shoulder"]


def test_rules_do_not_match_inside_words():
    # "shipping" không phải hip
    assert analyze_with_rules("I work in shipping") == []


def test_sanitize_drops_invalid_tags_individually():
    raw = [
        {
            "type": "injury_history",
            "affected_area": "Knee",
            "restrictions": ["deep_squat", "no_burpees"],
            "modifications": ["partial_range", "ice_after"],
        }
    ]

    out = sanitize_considerations(raw)

    assert len(out) == 1
    assert out[0].affected_area == "knee"
    assert out[0].restrictions == ["deep_squat"]
    assert out[0].modifications == ["partial_range"]


def test_sanitize_drops_bad_entries():
    raw = [
        {"type": "broken_bone", "affected_area": "wrist", "restrictions": ["push_up"]},
        {"type": "injury_history", "affected_area": "", "restrictions": ["push_up"]},
        {"type": "injury_history", "affected_area": "ankle", "restrictions": ["made_up"]},
        "not a dict",
        {"type": "mobility_issue", "affected_area": "hip", "restrictions": ["deep_squat"]},
    ]

    out = sanitize_considerations(raw)

    assert [c.affected_area for c in out] == ["hip"]


def test_sanitize_never_emits_tags_outside_vocabulary():
    raw = [
        {"type": "joint_limitation", "affected_area": "spine",
         "restrictions": ["HEAVY_LOADING", "twisting"], "modifications": ["Core_Focus", "yoga"]},
    ]
    for c in sanitize_considerations(raw):
        assert set(c.restrictions) <= RESTRICTION_TAG_SET
        assert set(c.modifications) <= MODIFICATION_TAG_SET


def test_sanitize_non_list_output():
    assert sanitize_considerations(None) == []
    assert sanitize_considerations({"type": "injury_history"}) == []


def test_classifier_result_is_used(make_profile):
    classifier = StaticClassifier([
        {"type": "injury_history", "affected_area": "elbow", "restrictions": ["heavy_pressing"]},
    ])

    out = analyze_health_considerations(make_profile(health_note="tennis elbow"), classifier=classifier)

    assert classifier.calls == ["tennis elbow"]
    assert [c.affected_area for c in out] == ["elbow"]
    assert out[0].modifications == []


def test_classifier_error_falls_back_to_rules(make_profile, capsys):
    out = analyze_health_considerations(make_profile(health_note="knee pain"), classifier=BrokenClassifier())

    assert [c.affected_area for c in out] == ["knee"]
    assert "[HEALTH] classifier error" in capsys.readouterr().out


def test_classifier_garbage_falls_back_to_rules(make_profile):
    classifier = StaticClassifier([{"type": "whatever", "affected_area": "knee"}])

    out = analyze_health_considerations(make_profile(health_note="sore wrist"), classifier=classifier)

    assert [c.affected_area for c in out] == ["wrist"]


def test_llm_classifier_uses_structured_output():
    llm = MagicMock()
    llm.generate_structured.return_value = {
        "considerations": [
            {"type": "injury_history", "affected_area": "knee", "restrictions": ["high_impact"], "modifications": []}
        ]
    }

    out = LLMHealthClassifier(llm).classify("knee pain")

    prompt, schema = llm.generate_structured.call_args[0]
    assert schema is HealthClassification
    assert "knee pain" in prompt
    assert out[0]["affected_area"] == "knee"


def test_llm_classifier_empty_result():
    llm = MagicMock()
    llm.generate_structured.return_value = {}
    assert LLMHealthClassifier(llm).classify("nothing") == []


def test_health_prompt_lists_vocabulary():
    prompt = build_health_prompt("back pain")
    for tag in ("deep_squat", "neutral_spine", "mobility_issue"):
        assert tag in prompt
