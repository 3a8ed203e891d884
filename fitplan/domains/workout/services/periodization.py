from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from fitplan.domains.workout.schemas import (
    FitnessLevel,
    Objective,
    Phase,
    PeriodizationConfig,
    PhaseConfig,
    ProgressionMethod,
    WeeklyProgression,
)

DELOAD_INTENSITY_MODIFIER = 0.7
DELOAD_VOLUME_MODIFIER = 0.6


@dataclass(frozen=True)
class PhaseSpec:
    phase: Phase
    fraction: float  # tỉ lệ trên total_weeks, làm tròn lên
    intensity: float
    volume: float
    weight: float
    reps: float
    sets: float


@dataclass(frozen=True)
class ProgressionProfile:
    method: ProgressionMethod
    deload_frequency: int
    phases: Tuple[PhaseSpec, ...]


_F, _B, _P = Phase.foundation, Phase.build, Phase.peak
_B_, _I_, _A_ = FitnessLevel.BEGINNER, FitnessLevel.INTERMEDIATE, FitnessLevel.ADVANCED

PROGRESSION_TABLE: Dict[Tuple[FitnessLevel, Objective], ProgressionProfile] = {
    # ---------------- BEGINNER ----------------
    (_B_, Objective.LOSE_FAT): ProgressionProfile(ProgressionMethod.linear, 6, (
        PhaseSpec(_F, 0.4, 0.8, 0.9, 1.0, 1, 0.5),
        PhaseSpec(_B, 0.4, 0.95, 1.0, 2.0, 0, 0),
        PhaseSpec(_P, 0.2, 1.0, 1.1, 1.0, -1, 0.5),
    )),
    (_B_, Objective.GAIN_MUSCLE): ProgressionProfile(ProgressionMethod.linear, 5, (
        PhaseSpec(_F, 0.3, 0.85, 0.9, 2.0, 0, 0.5),
        PhaseSpec(_B, 0.5, 1.0, 1.0, 2.5, 0, 0),
        PhaseSpec(_P, 0.2, 1.05, 1.1, 2.0, -1, 0.5),
    )),
    (_B_, Objective.ENDURANCE): ProgressionProfile(ProgressionMethod.wave, 4, (
        PhaseSpec(_F, 0.4, 0.8, 1.0, 0.0, 2, 0),
        PhaseSpec(_B, 0.4, 0.9, 1.1, 0.0, 1, 0.5),
        PhaseSpec(_P, 0.2, 1.0, 1.2, 0.0, 0, 0),
    )),
    (_B_, Objective.MAINTAIN): ProgressionProfile(ProgressionMethod.undulating, 8, (
        PhaseSpec(_F, 0.6, 0.9, 0.95, 1.0, 0, 0),
        PhaseSpec(_B, 0.4, 1.0, 1.0, 1.0, 0, 0),
    )),
    # ---------------- INTERMEDIATE ----------------
    (_I_, Objective.LOSE_FAT): ProgressionProfile(ProgressionMethod.wave, 3, (
        PhaseSpec(_F, 0.25, 0.9, 1.0, 2.0, 0, 0.5),
        PhaseSpec(_B, 0.5, 1.0, 1.1, 2.5, -1, 0.5),
        PhaseSpec(_P, 0.25, 1.1, 1.2, 2.0, -2, 0),
    )),
    (_I_, Objective.GAIN_MUSCLE): ProgressionProfile(ProgressionMethod.block, 4, (
        PhaseSpec(_F, 0.2, 0.9, 1.0, 2.5, 0, 0.5),
        PhaseSpec(_B, 0.6, 1.0, 1.1, 3.0, -1, 0.5),
        PhaseSpec(_P, 0.2, 1.05, 1.2, 2.5, -2, 0.5),
    )),
    (_I_, Objective.ENDURANCE): ProgressionProfile(ProgressionMethod.wave, 3, (
        PhaseSpec(_F, 0.3, 0.85, 1.1, 0.0, 3, 0.5),
        PhaseSpec(_B, 0.5, 0.95, 1.2, 0.0, 2, 0.5),
        PhaseSpec(_P, 0.2, 1.0, 1.3, 0.0, 1, 0),
    )),
    (_I_, Objective.MAINTAIN): ProgressionProfile(ProgressionMethod.undulating, 6, (
        PhaseSpec(_F, 0.5, 0.95, 1.0, 1.5, 0, 0),
        PhaseSpec(_B, 0.5, 1.0, 1.05, 1.5, 0, 0),
    )),
    # ---------------- ADVANCED ----------------
    (_A_, Objective.LOSE_FAT): ProgressionProfile(ProgressionMethod.block, 3, (
        PhaseSpec(_F, 0.2, 0.95, 1.0, 3.0, -1, 0.5),
        PhaseSpec(_B, 0.5, 1.0, 1.1, 3.5, -2, 0.5),
        PhaseSpec(_P, 0.3, 1.1, 1.2, 3.0, -3, 0.5),
    )),
    (_A_, Objective.GAIN_MUSCLE): ProgressionProfile(ProgressionMethod.block, 3, (
        PhaseSpec(_F, 0.15, 0.95, 1.0, 3.0, 0, 0.5),
        PhaseSpec(_B, 0.65, 1.0, 1.1, 3.5, -1, 0.5),
        PhaseSpec(_P, 0.2, 1.05, 1.2, 3.0, -2, 0.5),
    )),
    (_A_, Objective.ENDURANCE): ProgressionProfile(ProgressionMethod.block, 3, (
        PhaseSpec(_F, 0.25, 0.9, 1.1, 0.0, 4, 0.5),
        PhaseSpec(_B, 0.5, 1.0, 1.2, 0.0, 3, 0.5),
        PhaseSpec(_P, 0.25, 1.05, 1.3, 0.0, 2, 0.5),
    )),
    (_A_, Objective.MAINTAIN): ProgressionProfile(ProgressionMethod.undulating, 4, (
        PhaseSpec(_F, 0.4, 1.0, 1.0, 2.0, 0, 0),
        PhaseSpec(_B, 0.6, 1.05, 1.1, 2.0, 0, 0.5),
    )),
}


def _phase_weeks(total_weeks: int, fraction: float) -> int:
    # round trước khi ceil: 0.3 * 10 = 3.0000000000000004
    return max(1, math.ceil(round(total_weeks * fraction, 6)))


def build_periodization_config(
    fitness_level: FitnessLevel,
    objective: Objective,
    total_weeks: int,
) -> PeriodizationConfig:
    if total_weeks < 1:
        raise ValueError("total_weeks phải >= 1")

    profile = PROGRESSION_TABLE[(FitnessLevel(fitness_level), Objective(objective))]
    phases = [
        PhaseConfig(
            phase=ph.phase,
            duration_weeks=_phase_weeks(total_weeks, ph.fraction),
            intensity_multiplier=ph.intensity,
            volume_multiplier=ph.volume,
            weight_increase_per_week=ph.weight,
            reps_adjustment_per_week=ph.reps,
            sets_adjustment_per_week=ph.sets,
        )
        for ph in profile.phases
    ]
    return PeriodizationConfig(
        method=profile.method,
        total_weeks=total_weeks,
        deload_frequency=profile.deload_frequency,
        phases=phases,
    )


class PeriodizationScheduler:
    """
    Phase state machine FOUNDATION -> BUILD -> PEAK, deload là overlay theo tần suất.
    Stateless: mọi method là pure function của (config, week).
    """

    def __init__(self, config: PeriodizationConfig) -> None:
        self.config = config

    @classmethod
    def for_profile(cls, fitness_level: FitnessLevel, objective: Objective, total_weeks: int) -> "PeriodizationScheduler":
        return cls(build_periodization_config(fitness_level, objective, total_weeks))

    def resolve(self, week: int) -> PhaseConfig:
        if week < 1:
            raise ValueError(f"week phải >= 1 (={week})")
        end = 0
        for phase in self.config.phases:
            end += phase.duration_weeks
            if week <= end:
                return phase
        # quá tổng duration: giữ phase cuối
        return self.config.phases[-1]

    def is_deload(self, week: int) -> bool:
        return week % self.config.deload_frequency == 0

    def weekly_progression(self, week: int) -> WeeklyProgression:
        phase = self.resolve(week)
        if self.is_deload(week):
            return WeeklyProgression(
                week=week,
                phase=phase.phase,
                intensity_modifier=DELOAD_INTENSITY_MODIFIER,
                volume_modifier=DELOAD_VOLUME_MODIFIER,
                weight_increase=0.0 - phase.weight_increase_per_week,
                reps_adjustment=0.0 - phase.reps_adjustment_per_week,
                sets_adjustment=0.0 - phase.sets_adjustment_per_week,
                is_deload_week=True,
            )
        return WeeklyProgression(
            week=week,
            phase=phase.phase,
            intensity_modifier=phase.intensity_multiplier,
            volume_modifier=phase.volume_multiplier,
            weight_increase=phase.weight_increase_per_week,
            reps_adjustment=phase.reps_adjustment_per_week,
            sets_adjustment=phase.sets_adjustment_per_week,
            is_deload_week=False,
        )

    def schedule(self) -> List[WeeklyProgression]:
        return [self.weekly_progression(w) for w in range(1, self.config.total_weeks + 1)]

    def summary(self) -> Dict[str, object]:
        return {
            "method": self.config.method.value,
            "deload_frequency": self.config.deload_frequency,
            "phases": [
                {"phase": p.phase.value, "duration_weeks": p.duration_weeks}
                for p in self.config.phases
            ],
        }
