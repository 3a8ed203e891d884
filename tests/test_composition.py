from fitplan.domains.workout.schemas import ExerciseRecord, MovementPattern, ScoredCandidate, SessionTemplate
from fitplan.domains.workout.services.composition import (
    FORCED_ADMITS,
    compose_session,
    compose_sessions,
    muscle_matches,
    should_admit,
)

MP = MovementPattern


def _cand(ex_id, pattern=MP.squat, muscle="quadriceps", similarity=0.8):
    record = ExerciseRecord(id=ex_id, name=f"Exercise {ex_id}", primary_muscle=muscle)
    return ScoredCandidate(exercise=record, similarity=similarity, movement_pattern=pattern, priority=1)


def _template(patterns, muscles=("quadriceps",), count=5):
    return SessionTemplate(
        name="Test Session",
        focus="test",
        patterns=list(patterns),
        target_muscles=list(muscles),
        exercise_count=count,
        intensity_level=5,
    )


def test_muscle_matches_substring_both_ways():
    assert muscle_matches("Latissimus Dorsi", ["latissimus_dorsi"])
    assert muscle_matches("pectoral", ["pectorals"])
    assert muscle_matches("upper pectorals", ["pectorals"])
    assert not muscle_matches("forearms", ["biceps", "triceps"])
    assert not muscle_matches("", ["biceps"])


def test_first_admits_are_forced():
    used_patterns = {MP.squat}
    used_muscles = {"quadriceps"}
    candidate = _cand("x")

    for n in range(FORCED_ADMITS):
        assert should_admit(candidate, n, used_patterns, used_muscles, template_pattern_count=1)
    assert not should_admit(candidate, FORCED_ADMITS, used_patterns, used_muscles, template_pattern_count=1)


def test_admit_new_pattern_or_muscle():
    used_patterns = {MP.squat}
    used_muscles = {"quadriceps"}

    assert should_admit(_cand("p", MP.hinge), 4, used_patterns, used_muscles, 1)
    assert should_admit(_cand("m", MP.squat, "glutes"), 4, used_patterns, used_muscles, 1)
    # còn pattern của template chưa phủ
    assert should_admit(_cand("c"), 4, used_patterns, used_muscles, 2)


def test_compose_skips_redundant_then_backfills():
    pool = [
        _cand("a"),
        _cand("b"),
        _cand("c"),
        _cand("d"),
        _cand("e", muscle="hamstrings"),
    ]

    selected = compose_session(_template([MP.squat]), pool)

    assert [c.exercise.id for c in selected] == ["a", "b", "c", "e", "d"]


def test_compose_admits_while_patterns_uncovered():
    pool = [_cand("a"), _cand("b"), _cand("c"), _cand("d"), _cand("e", MP.push_horizontal, "pectorals")]

    selected = compose_session(_template([MP.squat, MP.push_horizontal], ["quadriceps", "pectorals"]), pool)

    assert [c.exercise.id for c in selected] == ["a", "b", "c", "d", "e"]


def test_compose_never_exceeds_target():
    pool = [_cand(str(i)) for i in range(10)]

    selected = compose_session(_template([MP.squat], count=4), pool)

    assert len(selected) == 4
    assert len({c.exercise.id for c in selected}) == 4


def test_compose_underfills_when_pool_small():
    pool = [_cand("a"), _cand("b", MP.carry, "forearms")]

    selected = compose_session(_template([MP.squat], count=5), pool)

    assert [c.exercise.id for c in selected] == ["a"]


def test_compose_matches_by_muscle_when_pattern_differs():
    pool = [_cand("lat", MP.carry, "Latissimus Dorsi"), _cand("grip", MP.carry, "forearms")]

    selected = compose_session(_template([MP.pull_vertical], ["latissimus_dorsi"]), pool)

    assert [c.exercise.id for c in selected] == ["lat"]


def test_compose_sessions_one_per_template():
    pool = [_cand("a"), _cand("b", MP.push_horizontal, "pectorals")]
    templates = [_template([MP.squat]), _template([MP.push_horizontal], ["pectorals"])]

    sessions = compose_sessions(templates, pool)

    assert [[c.exercise.id for c in s] for s in sessions] == [["a"], ["b"]]
