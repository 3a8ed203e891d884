from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fitplan.domains.workout.contract import (
    CONSIDERATION_TYPE_ENUM,
    FITNESS_LEVEL_ENUM,
    GENDER_ENUM,
    MODIFICATION_TAG_SET,
    MOVEMENT_PATTERN_ENUM,
    OBJECTIVE_ENUM,
    RESTRICTION_TAG_SET,
    SESSION_TYPE_ENUM,
    canonicalize_equipment_preference,
    is_valid_equipment_preference,
)


# ============================================================
# Enums
# ============================================================

class FitnessLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Objective(str, Enum):
    LOSE_FAT = "LOSE_FAT"
    GAIN_MUSCLE = "GAIN_MUSCLE"
    ENDURANCE = "ENDURANCE"
    MAINTAIN = "MAINTAIN"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class MovementPattern(str, Enum):
    squat = "squat"
    hinge = "hinge"
    lunge = "lunge"
    push_vertical = "push_vertical"
    push_horizontal = "push_horizontal"
    pull_vertical = "pull_vertical"
    pull_horizontal = "pull_horizontal"
    carry = "carry"
    core = "core"
    rotation = "rotation"
    gait = "gait"
    cardio = "cardio"


class SessionType(str, Enum):
    full_body = "full_body"
    full_body_varied = "full_body_varied"
    upper_lower = "upper_lower"
    body_part_split = "body_part_split"


class ConsiderationType(str, Enum):
    joint_limitation = "joint_limitation"
    injury_history = "injury_history"
    mobility_issue = "mobility_issue"


class Phase(str, Enum):
    foundation = "foundation"
    build = "build"
    peak = "peak"
    deload = "deload"


class ProgressionMethod(str, Enum):
    linear = "linear"
    undulating = "undulating"
    block = "block"
    wave = "wave"


class Intensity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# Guard tránh lệch contract về sau
assert tuple(x.value for x in FitnessLevel) == FITNESS_LEVEL_ENUM, "FitnessLevel lệch FITNESS_LEVEL_ENUM"
assert tuple(x.value for x in Objective) == OBJECTIVE_ENUM, "Objective lệch OBJECTIVE_ENUM"
assert tuple(x.value for x in Gender) == GENDER_ENUM, "Gender lệch GENDER_ENUM"
assert tuple(x.value for x in MovementPattern) == MOVEMENT_PATTERN_ENUM, "MovementPattern lệch MOVEMENT_PATTERN_ENUM"
assert tuple(x.value for x in SessionType) == SESSION_TYPE_ENUM, "SessionType lệch SESSION_TYPE_ENUM"
assert tuple(x.value for x in ConsiderationType) == CONSIDERATION_TYPE_ENUM, "ConsiderationType lệch CONSIDERATION_TYPE_ENUM"


# ============================================================
# Inputs
# ============================================================

class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    age: int = Field(ge=10, le=100)
    gender: Gender
    height_cm: float = Field(gt=0, le=260)
    weight_kg: float = Field(gt=0, le=400)
    bmi: Optional[float] = Field(default=None, gt=0)
    fitness_level: FitnessLevel
    health_note: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_bmi(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("bmi") is not None:
            return data
        try:
            h = float(data.get("height_cm")) / 100.0
            w = float(data.get("weight_kg"))
        except (TypeError, ValueError):
            return data
        if h <= 0:
            return data
        return {**data, "bmi": round(w / (h * h), 1)}


class Goal(BaseModel):
    model_config = ConfigDict(frozen=True)

    objective: Objective
    sessions_per_week: int = Field(ge=1, le=7)
    session_minutes: int = Field(ge=10, le=180)
    equipment_preferences: List[str] = Field(default_factory=list)

    @field_validator("equipment_preferences", mode="before")
    @classmethod
    def _canonicalize_equipment(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        out: List[str] = []
        for p in v:
            if not is_valid_equipment_preference(p):
                continue
            c = canonicalize_equipment_preference(p)
            if c not in out:
                out.append(c)
        return out


# ============================================================
# Health considerations
# ============================================================

class HealthConsideration(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ConsiderationType
    affected_area: str = Field(min_length=1)
    restrictions: List[str] = Field(default_factory=list)
    modifications: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_vocabulary(self):
        bad = [r for r in self.restrictions if r not in RESTRICTION_TAG_SET]
        if bad:
            raise ValueError(f"restrictions ngoài vocabulary: {bad}")
        bad = [m for m in self.modifications if m not in MODIFICATION_TAG_SET]
        if bad:
            raise ValueError(f"modifications ngoài vocabulary: {bad}")
        return self


class RawHealthConsideration(BaseModel):
    """Shape lỏng cho LLM structured output; validate lại bằng contract trước khi dùng."""
    type: str
    affected_area: str
    restrictions: List[str] = Field(default_factory=list)
    modifications: List[str] = Field(default_factory=list)


class HealthClassification(BaseModel):
    considerations: List[RawHealthConsideration] = Field(default_factory=list)


# ============================================================
# Strategy
# ============================================================

class RestPeriods(BaseModel):
    model_config = ConfigDict(frozen=True)

    compound: int = Field(ge=0)
    isolation: int = Field(ge=0)
    cardio: int = Field(ge=0)


class IntensityLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=1, le=10)
    rpe_target: int = Field(ge=5, le=9)
    rest_periods: RestPeriods


class VolumeTargets(BaseModel):
    model_config = ConfigDict(frozen=True)

    sets_per_muscle_group: int = Field(ge=1)
    reps_range: Tuple[int, int]
    weekly_volume_minutes: int = Field(ge=0)

    @model_validator(mode="after")
    def _validate_range(self):
        lo, hi = self.reps_range
        if lo > hi:
            raise ValueError("reps_range: lo phải <= hi")
        return self


class SessionStructure(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: SessionType
    exercises_per_session: int = Field(ge=1)
    strategy: str


class PhaseConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: Phase
    duration_weeks: int = Field(ge=1)
    intensity_multiplier: float
    volume_multiplier: float
    weight_increase_per_week: float
    reps_adjustment_per_week: float
    sets_adjustment_per_week: float


class PeriodizationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: ProgressionMethod
    total_weeks: int = Field(ge=1)
    deload_frequency: int = Field(ge=1)
    phases: List[PhaseConfig] = Field(min_length=1)


class PlanStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary_objective: Objective
    experience_level: FitnessLevel
    session_structure: SessionStructure
    equipment_preferences: List[str] = Field(default_factory=list)
    special_considerations: List[HealthConsideration] = Field(default_factory=list)
    intensity_level: IntensityLevel
    volume_targets: VolumeTargets
    periodization_config: PeriodizationConfig

    def active_restrictions(self) -> List[str]:
        out: List[str] = []
        for c in self.special_considerations:
            for r in c.restrictions:
                if r not in out:
                    out.append(r)
        return out

    def affected_areas(self) -> List[str]:
        return [c.affected_area for c in self.special_considerations]


# ============================================================
# Catalog + candidates
# ============================================================

class ExerciseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    primary_muscle: str = ""
    secondary_muscles: List[str] = Field(default_factory=list)
    equipment: str = ""
    body_part: str = ""
    category: str = ""
    exercise_type: str = ""
    difficulty_level: int = Field(default=3, ge=1, le=5)
    instructions: List[str] = Field(default_factory=list)
    safety_notes: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> str:
        return str(v)

    @field_validator("instructions", mode="before")
    @classmethod
    def _instructions_to_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [line.strip() for line in v.splitlines() if line.strip()]
        return [str(x) for x in v]

    @field_validator("exercise_type", mode="before")
    @classmethod
    def _upper_type(cls, v: Any) -> str:
        return str(v or "").strip().upper()

    def searchable_text(self) -> str:
        """name + instructions, lowercase. Dùng cho restriction matching."""
        return " ".join([self.name, *self.instructions]).lower()


class ScoredCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    exercise: ExerciseRecord
    similarity: float = Field(ge=0.0, le=1.0)
    movement_pattern: MovementPattern
    priority: int = Field(ge=1)


class SessionTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    focus: str
    patterns: List[MovementPattern]
    target_muscles: List[str]
    exercise_count: int = Field(ge=1)
    intensity_level: int = Field(ge=1, le=10)


# ============================================================
# Progression + prescription
# ============================================================

class WeeklyProgression(BaseModel):
    model_config = ConfigDict(frozen=True)

    week: int = Field(ge=1)
    phase: Phase
    intensity_modifier: float
    volume_modifier: float
    weight_increase: float
    reps_adjustment: float
    sets_adjustment: float
    is_deload_week: bool = False


class ProgressiveOverloadBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_sets: int
    base_reps: Optional[int] = None
    base_weight_kg: float
    sets_adjustment: float
    reps_adjustment: float
    weight_increase: float


class Prescription(BaseModel):
    model_config = ConfigDict(frozen=True)

    sets: int = Field(ge=1, le=8)
    reps: Optional[int] = Field(default=None, ge=5, le=30)
    duration_seconds: Optional[int] = Field(default=None, ge=1)
    weight_kg: float = Field(ge=0)
    rest_seconds: int = Field(ge=30, le=300)
    intensity: Intensity
    rpe: Optional[float] = Field(default=None, ge=5, le=10)
    progressive_overload: Optional[ProgressiveOverloadBreakdown] = None

    @model_validator(mode="after")
    def _reps_xor_duration(self):
        if (self.reps is None) == (self.duration_seconds is None):
            raise ValueError("Prescription phải có đúng 1 trong reps / duration_seconds")
        return self


class PlanItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    exercise: ExerciseRecord
    item_index: int = Field(ge=0)
    movement_pattern: MovementPattern
    prescription: Prescription
    generated_note: str = ""


class PlanDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_index: int = Field(ge=0)
    week: int = Field(ge=1)
    scheduled_date: dt.date
    session_template_name: str
    focus: str
    exercise_count_target: int = Field(ge=1)
    intensity_level: int = Field(ge=1, le=10)
    phase: Phase
    is_deload_week: bool = False
    items: List[PlanItem] = Field(default_factory=list)
    total_duration_seconds: int = Field(ge=0)


class Plan(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    objective: Objective
    fitness_level: FitnessLevel
    total_weeks: int = Field(ge=1)
    sessions_per_week: int = Field(ge=1, le=7)
    start_date: dt.date
    end_date: dt.date
    days: List[PlanDay]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
