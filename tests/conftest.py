import datetime as dt
import threading
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from fitplan.domains.workout.ports import SearchHit
from fitplan.domains.workout.schemas import ExerciseRecord, Goal, UserProfile


def _ex(id, name, muscle, equipment, body_part, category, kind, difficulty, instructions=(), tags=(), safety=""):
    return ExerciseRecord(
        id=id,
        name=name,
        primary_muscle=muscle,
        equipment=equipment,
        body_part=body_part,
        category=category,
        exercise_type=kind,
        difficulty_level=difficulty,
        instructions=list(instructions),
        tags=list(tags),
        safety_notes=safety,
    )


CATALOG: List[ExerciseRecord] = [
    _ex(1, "Barbell Back Squat", "quadriceps", "barbell", "upper_legs", "strength", "COMPOUND", 3,
        ["Place the bar on your upper back", "Sit down to parallel and stand up"], ["compound"]),
    _ex(2, "Bodyweight Deep Squat", "quadriceps", "body_weight", "upper_legs", "strength", "BODYWEIGHT", 2,
        ["Sink as low as possible"]),
    _ex(3, "Goblet Squat", "quadriceps", "dumbbell", "upper_legs", "strength", "FREEWEIGHT", 2,
        ["Hold the dumbbell at chest height"]),
    _ex(4, "Romanian Deadlift", "hamstrings", "barbell", "upper_legs", "strength", "COMPOUND", 3,
        ["Push hips back with soft knees"], ["compound"], "Keep the bar close"),
    _ex(5, "Glute Bridge", "glutes", "body_weight", "upper_legs", "strength", "BODYWEIGHT", 1,
        ["Drive hips up squeezing glutes"]),
    _ex(6, "Dumbbell Bench Press", "pectorals", "dumbbell", "chest", "strength", "FREEWEIGHT", 2,
        ["Lower dumbbells to chest level"]),
    _ex(7, "Push-Up", "pectorals", "body_weight", "chest", "strength", "BODYWEIGHT", 1,
        ["Lower chest to the floor"]),
    _ex(8, "Overhead Press", "deltoids", "barbell", "shoulders", "strength", "COMPOUND", 3,
        ["Press the bar above your head"]),
    _ex(9, "Lat Pulldown", "latissimus_dorsi", "cable", "back", "strength", "MACHINE", 2,
        ["Pull the bar to upper chest"]),
    _ex(10, "Pull-Up", "latissimus_dorsi", "body_weight", "back", "strength", "COMPOUND", 4,
        ["Pull chin over the bar"]),
    _ex(11, "Seated Cable Row", "rhomboids", "cable", "back", "strength", "MACHINE", 2,
        ["Pull handle to your stomach"]),
    _ex(12, "Bent Over Dumbbell Row", "latissimus_dorsi", "dumbbell", "back", "strength", "FREEWEIGHT", 3,
        ["Hinge forward and pull dumbbells"]),
    _ex(13, "Front Plank", "abdominals", "body_weight", "waist", "core", "BODYWEIGHT", 1,
        ["Hold a straight line on forearms"]),
    _ex(14, "Pallof Press", "obliques", "resistance_band", "waist", "core", "ISOLATION", 2,
        ["Resist rotation while extending arms"]),
    _ex(15, "Farmer Carry", "forearms", "dumbbell", "lower_arms", "strength", "COMPOUND", 2,
        ["Walk holding heavy dumbbells"]),
    _ex(16, "Walking Lunge", "quadriceps", "dumbbell", "upper_legs", "strength", "FREEWEIGHT", 2,
        ["Step forward into a lunge"]),
    _ex(17, "Jump Rope", "calves", "rope", "cardio", "cardio", "CARDIO", 2,
        ["Skip continuously on the balls of the feet"]),
    _ex(18, "HIIT Bike Sprint", "quadriceps", "stationary_bike", "cardio", "cardio", "CARDIO", 3,
        ["Alternate sprints and easy pedaling"], ["hiit"]),
    _ex(19, "Brisk Walk", "calves", "body_weight", "cardio", "cardio", "CARDIO", 1,
        ["Walk at a steady fast pace"]),
    _ex(20, "Dumbbell Biceps Curl", "biceps", "dumbbell", "upper_arms", "strength", "ISOLATION", 1,
        ["Curl dumbbells to shoulders"]),
    _ex(21, "Triceps Rope Pushdown", "triceps", "cable", "upper_arms", "strength", "ISOLATION", 2,
        ["Extend elbows fully"]),
    _ex(22, "Box Jump", "quadriceps", "box", "upper_legs", "plyometrics", "PLYOMETRIC", 3,
        ["Explode onto the box"]),
    _ex(23, "Russian Twist", "obliques", "body_weight", "waist", "core", "BODYWEIGHT", 2,
        ["Rotate torso side to side"]),
]

KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "1": ("squat", "quad", "glute", "barbell"),
    "2": ("squat", "deep", "quad"),
    "3": ("squat", "quad", "dumbbell"),
    "4": ("deadlift", "hinge", "hamstring"),
    "5": ("glute", "bridge", "hip"),
    "6": ("press", "chest", "bench", "dumbbell"),
    "7": ("push", "chest", "floor"),
    "8": ("press", "overhead", "shoulder"),
    "9": ("lat", "pulldown", "back"),
    "10": ("pull", "up", "lat"),
    "11": ("row", "back", "rhomboids", "cable"),
    "12": ("row", "back", "dumbbell"),
    "13": ("plank", "core", "abs"),
    "14": ("anti-rotation", "core", "band"),
    "15": ("carry", "farmer", "walk"),
    "16": ("lunge", "split", "unilateral", "quad"),
    "17": ("jump", "rope", "cardio", "conditioning"),
    "18": ("hiit", "sprint", "bike", "interval"),
    "19": ("walk", "aerobic", "steady"),
    "20": ("curl", "biceps", "pull"),
    "21": ("triceps", "push", "cable"),
    "22": ("jump", "box", "lower", "body"),
    "23": ("twist", "oblique", "rotation"),
}


class FakeRetrieval:
    """Similarity = tỉ lệ keyword của bài xuất hiện trong query."""

    def __init__(self, keywords: Optional[Dict[str, Tuple[str, ...]]] = None, fail_on: Optional[str] = None):
        self.keywords = KEYWORDS if keywords is None else keywords
        self.fail_on = fail_on
        self.calls: List[Tuple[str, int, float]] = []
        self._lock = threading.Lock()

    def search(self, query: str, k: int, similarity_threshold: float) -> List[SearchHit]:
        with self._lock:
            self.calls.append((query, k, similarity_threshold))
        tokens = set(query.lower().split())
        if self.fail_on and self.fail_on in tokens:
            raise ConnectionError("vector store unavailable")

        hits = []
        for ex_id, kws in self.keywords.items():
            sim = sum(1 for kw in kws if kw in tokens) / len(kws)
            if sim > similarity_threshold:
                hits.append(SearchHit(exercise_id=ex_id, similarity=round(sim, 4)))
        hits.sort(key=lambda h: (-h.similarity, int(h.exercise_id)))
        return hits[:k]


class FakeCatalog:
    def __init__(self, records: Sequence[ExerciseRecord] = CATALOG, deleted: Sequence[str] = ()):
        self.records = {r.id: r for r in records}
        self.deleted = set(deleted)
        self.calls = 0

    def get_by_ids(self, ids):
        self.calls += 1
        found = [self.records[i] for i in ids if i in self.records and i not in self.deleted]
        # thứ tự không đảm bảo
        return list(reversed(found))


class FakeStore:
    def __init__(self):
        self.saved = []

    def save_plan(self, plan):
        self.saved.append(plan)
        return len(self.saved)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def retrieval() -> FakeRetrieval:
    return FakeRetrieval()


@pytest.fixture
def records_by_name() -> Dict[str, ExerciseRecord]:
    return {r.name: r for r in CATALOG}


@pytest.fixture
def make_profile():
    def _make(**overrides) -> UserProfile:
        data = {
            "age": 30,
            "gender": "MALE",
            "height_cm": 180,
            "weight_kg": 80,
            "fitness_level": "BEGINNER",
            "health_note": None,
        }
        data.update(overrides)
        return UserProfile(**data)

    return _make


@pytest.fixture
def make_goal():
    def _make(**overrides) -> Goal:
        data = {
            "objective": "LOSE_FAT",
            "sessions_per_week": 2,
            "session_minutes": 45,
            "equipment_preferences": [],
        }
        data.update(overrides)
        return Goal(**data)

    return _make


@pytest.fixture
def start_date() -> dt.date:
    return dt.date(2026, 1, 5)
