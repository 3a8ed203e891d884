import datetime as dt

import pytest
from conftest import FakeCatalog, FakeRetrieval, FakeStore

from fitplan.core.audit import find_events
from fitplan.domains.workout.exceptions import NoSuitableExercisesError, PlanGenerationError
from fitplan.domains.workout.graph import (
    PlanGenerator,
    build_plan_generator_from_env,
    generate_plan,
    raise_for_result,
)
from fitplan.domains.workout.services.health import LLMHealthClassifier
from fitplan.domains.workout.state import PlanGenerationResult
from fitplan.shared.settings import EngineConfig


@pytest.fixture
def generator(retrieval, catalog):
    return PlanGenerator(retrieval, catalog)


def test_plan_has_one_day_per_session(generator, make_profile, make_goal, start_date):
    plan = generator.generate_plan(make_profile(), make_goal(), start_date=start_date)

    assert plan.total_weeks == 8
    assert plan.sessions_per_week == 2
    assert len(plan.days) == 16
    assert [d.day_index for d in plan.days] == list(range(16))
    assert [d.week for d in plan.days] == [w for w in range(1, 9) for _ in range(2)]
    assert plan.start_date == start_date
    assert plan.end_date == plan.days[-1].scheduled_date == dt.date(2026, 2, 27)


def test_every_prescription_within_bounds(generator, make_profile, make_goal, start_date):
    plan = generator.generate_plan(make_profile(), make_goal(), start_date=start_date)

    for day in plan.days:
        assert 0 < len(day.items) <= day.exercise_count_target
        assert [it.item_index for it in day.items] == list(range(len(day.items)))
        for item in day.items:
            p = item.prescription
            assert 1 <= p.sets <= 8
            assert (p.reps is None) != (p.duration_seconds is None)
            if p.reps is not None:
                assert 5 <= p.reps <= 30
            assert 30 <= p.rest_seconds <= 300
            assert 5 <= p.rpe <= 10
            assert p.weight_kg >= 0


def test_deload_weeks_are_marked(generator, make_profile, make_goal, start_date):
    plan = generator.generate_plan(make_profile(), make_goal(), start_date=start_date)

    deload_weeks = {d.week for d in plan.days if d.is_deload_week}
    assert deload_weeks == {6}
    assert plan.metadata["periodization"]["deload_frequency"] == 6


def test_generation_is_idempotent(make_profile, make_goal, start_date):
    profile, goal = make_profile(health_note="knee pain"), make_goal(sessions_per_week=3)

    first = PlanGenerator(FakeRetrieval(), FakeCatalog()).generate_plan(profile, goal, start_date=start_date)
    second = PlanGenerator(FakeRetrieval(), FakeCatalog()).generate_plan(profile, goal, start_date=start_date)

    assert first == second


def test_knee_note_excludes_deep_squats_and_jumps(generator, make_profile, make_goal, start_date):
    plan = generator.generate_plan(make_profile(health_note="knee pain"), make_goal(), start_date=start_date)

    names = {it.exercise.name for d in plan.days for it in d.items}
    assert names
    assert not any("Deep Squat" in n or "Jump" in n for n in names)
    assert plan.metadata["health_considerations"][0]["affected_area"] == "knee"


def test_equipment_preference_is_respected(generator, make_profile, make_goal, start_date):
    goal = make_goal(equipment_preferences=["bodyweight"])

    plan = generator.generate_plan(make_profile(), goal, start_date=start_date)

    assert {it.exercise.equipment for d in plan.days for it in d.items} == {"body_weight"}


def test_empty_pool_raises_no_suitable_exercises(catalog, make_profile, make_goal, start_date):
    store = FakeStore()
    generator = PlanGenerator(FakeRetrieval(keywords={}), catalog, store=store)

    with pytest.raises(NoSuitableExercisesError) as exc_info:
        generator.generate_plan(make_profile(), make_goal(), start_date=start_date)

    assert exc_info.value.error_type == "no_suitable_exercises"
    assert store.saved == []


def test_run_reports_issue_instead_of_raising(catalog, make_profile, make_goal, start_date):
    result = PlanGenerator(FakeRetrieval(keywords={}), catalog).run(make_profile(), make_goal(), start_date=start_date)

    assert result.plan is None
    assert not result.ok
    assert result.issues[0]["error_type"] == "no_suitable_exercises"
    assert result.pool_size == 0
    assert find_events(result.audit, "no_suitable_exercises")
    assert not find_events(result.audit, "composition_done")


def test_plan_is_saved_once(retrieval, catalog, make_profile, make_goal, start_date):
    store = FakeStore()

    plan = PlanGenerator(retrieval, catalog, store=store).generate_plan(make_profile(), make_goal(), start_date=start_date)

    assert store.saved == [plan]


def test_audit_trail_order(generator, make_profile, make_goal, start_date):
    result = generator.run(make_profile(), make_goal(), start_date=start_date)

    names = [e["name"] for e in result.audit["events"]]
    assert names == [
        "pipeline_start",
        "strategy_done",
        "retrieval_done",
        "scoring_done",
        "composition_done",
        "periodization_done",
        "prescription_done",
    ]
    assert result.ok
    assert result.candidate_count >= result.pool_size > 0


def test_run_raw_normalizes_request(generator, start_date):
    raw = {
        "age": "41",
        "gender": "male",
        "height_cm": "178",
        "weight_kg": "85",
        "fitness_level": "intermediate",
        "objective": "GAIN_MUSCLE",
        "sessions_per_week": "4",
        "session_minutes": "60",
    }

    result = generator.run_raw(raw, start_date=start_date)

    assert result.plan is not None
    assert result.plan.sessions_per_week == 4
    assert len(result.plan.days) == 4 * result.plan.total_weeks
    assert find_events(result.audit, "normalize_done")
    assert result.plan.days[0].session_template_name == "Upper Body"


def test_explicit_total_weeks(generator, make_profile, make_goal, start_date):
    plan = generator.generate_plan(make_profile(), make_goal(sessions_per_week=3), start_date=start_date, total_weeks=4)

    assert plan.total_weeks == 4
    assert len(plan.days) == 12


def test_config_threshold_reaches_retrieval(catalog, make_profile, make_goal, start_date):
    retrieval = FakeRetrieval()
    config = EngineConfig(similarity_threshold=0.5, retrieval_workers=2)

    PlanGenerator(retrieval, catalog, config=config).run(make_profile(), make_goal(), start_date=start_date)

    assert retrieval.calls
    assert {threshold for _, _, threshold in retrieval.calls} == {0.5}


def test_module_level_generate_plan(retrieval, catalog, make_profile, make_goal, start_date):
    store = FakeStore()

    plan = generate_plan(
        make_profile(),
        make_goal(),
        retrieval=retrieval,
        catalog=catalog,
        store=store,
        start_date=start_date,
    )

    assert store.saved == [plan]


def test_raise_for_result_generic_failure():
    result = PlanGenerationResult(request_id="r-1", issues=[{"error_type": "something_else"}])

    with pytest.raises(PlanGenerationError) as exc_info:
        raise_for_result(result)

    assert not isinstance(exc_info.value, NoSuitableExercisesError)
    assert exc_info.value.details["issues"] == result.issues


def test_build_generator_from_env_with_llm(monkeypatch):
    monkeypatch.setenv("FITPLAN_LLM_HEALTH_ANALYSIS", "true")
    monkeypatch.setenv("FITPLAN_SIMILARITY_THRESHOLD", "0.4")
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    generator = build_plan_generator_from_env()

    assert isinstance(generator.nodes.classifier, LLMHealthClassifier)
    assert generator.nodes.config.similarity_threshold == 0.4


def test_build_generator_from_env_without_credentials(monkeypatch, capsys):
    monkeypatch.setenv("FITPLAN_LLM_HEALTH_ANALYSIS", "1")
    monkeypatch.setenv("LLM_PROVIDER", "gemini")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    generator = build_plan_generator_from_env()

    assert generator.nodes.classifier is None
    assert "no credentials" in capsys.readouterr().out


def test_small_pool_gives_underfilled_warnings(catalog, make_profile, make_goal, start_date):
    retrieval = FakeRetrieval(keywords={"3": ("squat", "quad", "dumbbell")})

    result = PlanGenerator(retrieval, catalog).run(make_profile(), make_goal(), start_date=start_date, total_weeks=4)

    assert result.ok
    assert all(len(d.items) == 1 for d in result.plan.days)
    assert any("candidate pool too small" in w for w in result.plan.warnings)
    assert result.plan.metadata["underfilled_sessions"] == 8
