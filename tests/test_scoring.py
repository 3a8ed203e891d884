import pytest

from fitplan.domains.workout.schemas import (
    ExerciseRecord,
    FitnessLevel,
    HealthConsideration,
    MovementPattern,
    Objective,
    ScoredCandidate,
)
from fitplan.domains.workout.services.scoring import (
    apply_priority_boost,
    dedupe_candidates,
    filter_candidates,
    matches_equipment,
    matches_objective_category,
    matches_restriction,
    priority_delta,
    score_candidates,
    sort_candidates,
    violates_considerations,
    within_difficulty,
)
from fitplan.domains.workout.services.strategy import analyze_strategy

MP = MovementPattern


def _cand(record, similarity=0.8, pattern=MP.squat, priority=2):
    return ScoredCandidate(exercise=record, similarity=similarity, movement_pattern=pattern, priority=priority)


def test_dedupe_keeps_first_occurrence(records_by_name):
    squat = records_by_name["Barbell Back Squat"]
    first = _cand(squat, 0.6, MP.squat)
    second = _cand(squat, 0.9, MP.hinge)

    out = dedupe_candidates([first, second])

    assert out == [first]


def test_deep_squat_restriction_matches_name_and_instructions(records_by_name):
    assert matches_restriction(records_by_name["Bodyweight Deep Squat"], "deep_squat")
    assert not matches_restriction(records_by_name["Goblet Squat"], "deep_squat")

    by_instructions = ExerciseRecord(id="x", name="Sissy Squat", instructions=["Descend into a FULL SQUAT"])
    assert matches_restriction(by_instructions, "deep_squat")


def test_heavy_loading_has_no_keywords(records_by_name):
    for record in records_by_name.values():
        assert not matches_restriction(record, "heavy_loading")


def test_violates_considerations(records_by_name):
    knee = HealthConsideration(
        type="injury_history",
        affected_area="knee",
        restrictions=["high_impact", "deep_squat"],
    )
    assert violates_considerations(records_by_name["Box Jump"], [knee])
    assert violates_considerations(records_by_name["Jump Rope"], [knee])
    assert not violates_considerations(records_by_name["Goblet Squat"], [knee])
    assert not violates_considerations(records_by_name["Box Jump"], [])


@pytest.mark.parametrize(
    "level,difficulty,expected",
    [
        (FitnessLevel.BEGINNER, 3, True),
        (FitnessLevel.BEGINNER, 4, False),
        (FitnessLevel.INTERMEDIATE, 1, False),
        (FitnessLevel.INTERMEDIATE, 4, True),
        (FitnessLevel.ADVANCED, 2, False),
        (FitnessLevel.ADVANCED, 5, True),
    ],
)
def test_within_difficulty(level, difficulty, expected):
    record = ExerciseRecord(id="d", name="Test", difficulty_level=difficulty)
    assert within_difficulty(record, level) is expected


def test_equipment_preferences(records_by_name):
    push_up = records_by_name["Push-Up"]
    goblet = records_by_name["Goblet Squat"]
    back_squat = records_by_name["Barbell Back Squat"]

    assert matches_equipment(back_squat, [])
    assert matches_equipment(push_up, ["bodyweight"])
    assert not matches_equipment(goblet, ["bodyweight"])
    assert matches_equipment(goblet, ["home_workout"])
    assert not matches_equipment(back_squat, ["home_workout"])
    # gym = mọi thiết bị trừ body_weight
    assert matches_equipment(back_squat, ["gym"])
    assert not matches_equipment(push_up, ["gym"])
    assert matches_equipment(push_up, ["gym", "bodyweight"])


def test_equipment_code_is_canonicalized():
    record = ExerciseRecord(id="bw", name="Air Squat", equipment="Body Weight")
    assert matches_equipment(record, ["bodyweight"])


def test_objective_category_gain_muscle(records_by_name):
    assert matches_objective_category(records_by_name["HIIT Bike Sprint"], Objective.GAIN_MUSCLE)
    assert not matches_objective_category(records_by_name["Brisk Walk"], Objective.GAIN_MUSCLE)
    assert matches_objective_category(records_by_name["Dumbbell Biceps Curl"], Objective.GAIN_MUSCLE)
    assert matches_objective_category(records_by_name["Box Jump"], Objective.GAIN_MUSCLE)
    assert not matches_objective_category(records_by_name["Front Plank"], Objective.GAIN_MUSCLE)


def test_objective_category_lose_fat(records_by_name):
    assert matches_objective_category(records_by_name["Front Plank"], Objective.LOSE_FAT)
    assert matches_objective_category(records_by_name["Goblet Squat"], Objective.LOSE_FAT)
    assert not matches_objective_category(records_by_name["Lat Pulldown"], Objective.LOSE_FAT)
    assert not matches_objective_category(records_by_name["Dumbbell Biceps Curl"], Objective.LOSE_FAT)


def test_objective_category_endurance(records_by_name):
    assert matches_objective_category(records_by_name["Brisk Walk"], Objective.ENDURANCE)
    assert not matches_objective_category(records_by_name["Dumbbell Biceps Curl"], Objective.ENDURANCE)
    tagged = records_by_name["Dumbbell Biceps Curl"].model_copy(update={"tags": ["endurance"]})
    assert matches_objective_category(tagged, Objective.ENDURANCE)
    # MAINTAIN không lọc category
    assert matches_objective_category(records_by_name["Lat Pulldown"], Objective.MAINTAIN)


def test_priority_delta_first_rule_wins(records_by_name):
    assert priority_delta(records_by_name["Barbell Back Squat"], Objective.GAIN_MUSCLE) == -3
    assert priority_delta(records_by_name["Dumbbell Bench Press"], Objective.GAIN_MUSCLE) == -3
    assert priority_delta(records_by_name["Walking Lunge"], Objective.GAIN_MUSCLE) == -2
    assert priority_delta(records_by_name["Brisk Walk"], Objective.GAIN_MUSCLE) == 2
    assert priority_delta(records_by_name["Jump Rope"], Objective.LOSE_FAT) == -4
    assert priority_delta(records_by_name["Push-Up"], Objective.LOSE_FAT) == -2
    assert priority_delta(records_by_name["Brisk Walk"], Objective.ENDURANCE) == -4
    assert priority_delta(records_by_name["Lat Pulldown"], Objective.ENDURANCE) == 2
    assert priority_delta(records_by_name["Lat Pulldown"], Objective.MAINTAIN) == 0


def test_priority_boost_never_below_one(records_by_name):
    boosted = apply_priority_boost([_cand(records_by_name["Barbell Back Squat"], priority=1)], Objective.GAIN_MUSCLE)
    assert boosted[0].priority == 1

    lowered = apply_priority_boost([_cand(records_by_name["Brisk Walk"], priority=1)], Objective.GAIN_MUSCLE)
    assert lowered[0].priority == 3


def test_sort_priority_then_similarity_stable(records_by_name):
    a = _cand(records_by_name["Goblet Squat"], 0.5, priority=2)
    b = _cand(records_by_name["Glute Bridge"], 0.9, priority=2)
    c = _cand(records_by_name["Push-Up"], 0.4, priority=1)
    d = _cand(records_by_name["Front Plank"], 0.5, priority=2)

    assert sort_candidates([a, b, c, d]) == [c, b, a, d]


def test_score_candidates_removes_knee_violations(make_profile, make_goal, records_by_name):
    strategy = analyze_strategy(make_profile(health_note="knee pain"), make_goal())
    candidates = [
        _cand(records_by_name["Bodyweight Deep Squat"], 0.95),
        _cand(records_by_name["Goblet Squat"], 0.7),
        _cand(records_by_name["Box Jump"], 0.6),
        _cand(records_by_name["Pull-Up"], 0.9, MP.pull_vertical),
    ]

    pool = score_candidates(candidates, strategy)

    assert [c.exercise.name for c in pool] == ["Goblet Squat"]


def test_score_candidates_output_is_sorted(make_profile, make_goal, records_by_name):
    strategy = analyze_strategy(make_profile(), make_goal(objective="LOSE_FAT"))
    candidates = [
        _cand(records_by_name["Goblet Squat"], 0.9, priority=1),
        _cand(records_by_name["Jump Rope"], 0.5, MP.cardio, priority=1),
        _cand(records_by_name["Push-Up"], 0.7, MP.push_horizontal, priority=1),
    ]

    pool = score_candidates(candidates, strategy)

    keys = [(c.priority, -c.similarity) for c in pool]
    assert keys == sorted(keys)
    assert all(c.priority >= 1 for c in pool)


def test_category_falls_back_to_exercise_type():
    intervals = ExerciseRecord(
        id="900", name="Elliptical Intervals", category="conditioning", exercise_type="CARDIO", difficulty_level=2
    )
    bounds = ExerciseRecord(
        id="901", name="Skater Bounds", category="power", exercise_type="PLYOMETRIC", difficulty_level=3
    )

    assert matches_objective_category(intervals, Objective.ENDURANCE)
    assert matches_objective_category(intervals, Objective.LOSE_FAT)
    assert not matches_objective_category(intervals, Objective.GAIN_MUSCLE)
    assert matches_objective_category(bounds, Objective.GAIN_MUSCLE)
    assert matches_objective_category(bounds, Objective.LOSE_FAT)

    assert priority_delta(intervals, Objective.ENDURANCE) == -4
    assert priority_delta(intervals, Objective.LOSE_FAT) == -4
    assert priority_delta(bounds, Objective.LOSE_FAT) == -4
    assert priority_delta(bounds, Objective.GAIN_MUSCLE) == 0


def test_filter_uses_strategy_restrictions(records_by_name, make_profile, make_goal):
    strategy = analyze_strategy(make_profile(health_note="knee pain"), make_goal())
    candidates = [_cand(records_by_name["Box Jump"]), _cand(records_by_name["Goblet Squat"])]

    kept = filter_candidates(candidates, strategy)

    assert "high_impact" in strategy.active_restrictions()
    assert [c.exercise.name for c in kept] == ["Goblet Squat"]
