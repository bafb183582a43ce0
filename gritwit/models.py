"""Records exchanged between the store, the services and the web layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


@dataclass
class Exercise:
    id: str
    name: str
    category: str
    movement_type: str | None = None
    muscle_groups: list[str] = field(default_factory=list)
    description: str | None = None
    demo_video_url: str | None = None


@dataclass
class WorkoutLog:
    id: str
    workout_date: str
    notes: str | None
    is_rx: bool
    wod_id: str | None = None


@dataclass
class LeaderboardEntry:
    """Weekly workout count for one user."""

    display_name: str
    avatar_url: str | None
    workout_count: int


@dataclass
class SectionLog:
    id: str
    workout_log_id: str
    section_id: str
    finish_time_seconds: int | None
    rounds_completed: int | None
    extra_reps: int | None
    weight_kg: float | None
    notes: str | None
    is_rx: bool
    skipped: bool
    score_value: int | None


@dataclass
class SectionScoreWithMeta:
    """A section score joined with its section's type and title."""

    section_log_id: str
    section_type: str
    section_title: str | None
    finish_time_seconds: int | None
    rounds_completed: int | None
    extra_reps: int | None
    weight_kg: float | None
    is_rx: bool
    skipped: bool


@dataclass
class MovementLogWithName:
    """A movement result joined with the exercise name."""

    section_log_id: str
    exercise_name: str
    reps: int | None
    sets: int | None
    weight_kg: float | None
    notes: str | None


@dataclass
class MovementLogInput:
    """Result submitted for one movement within a section."""

    movement_id: str
    reps: int | None = None
    sets: int | None = None
    weight_kg: float | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MovementLogInput:
        return cls(
            movement_id=_require(data, "movement_id"),
            reps=data.get("reps"),
            sets=data.get("sets"),
            weight_kg=data.get("weight_kg"),
            notes=data.get("notes"),
        )


@dataclass
class SectionScoreInput:
    """Score submitted for a single section."""

    section_id: str
    finish_time_seconds: int | None = None
    rounds_completed: int | None = None
    extra_reps: int | None = None
    weight_kg: float | None = None
    notes: str | None = None
    is_rx: bool = False
    skipped: bool = False
    movement_logs: list[MovementLogInput] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SectionScoreInput:
        """Build from decoded JSON; ``movement_logs`` may be absent."""
        return cls(
            section_id=_require(data, "section_id"),
            finish_time_seconds=data.get("finish_time_seconds"),
            rounds_completed=data.get("rounds_completed"),
            extra_reps=data.get("extra_reps"),
            weight_kg=data.get("weight_kg"),
            notes=data.get("notes"),
            is_rx=bool(_require(data, "is_rx")),
            skipped=bool(_require(data, "skipped")),
            movement_logs=[
                MovementLogInput.from_dict(item)
                for item in data.get("movement_logs") or []
            ],
        )


@dataclass
class MovementLog:
    id: str
    section_log_id: str
    movement_id: str
    reps: int | None
    sets: int | None
    weight_kg: float | None
    notes: str | None


@dataclass
class SectionLeaderboardEntry:
    display_name: str
    avatar_url: str | None
    score_value: int
    is_rx: bool
    finish_time_seconds: int | None
    rounds_completed: int | None
    extra_reps: int | None
    weight_kg: float | None


@dataclass
class PersonalBest:
    score_value: int
    is_rx: bool
    logged_at: str


@dataclass
class Wod:
    id: str
    title: str
    description: str | None
    workout_type: str
    time_cap_minutes: int | None
    programmed_date: str


@dataclass
class WodSection:
    id: str
    wod_id: str
    phase: str
    title: str | None
    section_type: str
    time_cap_minutes: int | None
    rounds: int | None
    notes: str | None
    sort_order: int


@dataclass
class WodMovement:
    id: str
    section_id: str
    exercise_id: str
    exercise_name: str
    rep_scheme: str | None
    weight_kg_male: float | None
    weight_kg_female: float | None
    notes: str | None
    sort_order: int


@dataclass
class WorkoutExercise:
    """One set of an exercise in a custom workout log."""

    id: str
    exercise_id: str
    exercise_name: str
    set_number: int
    reps: int | None
    weight_kg: float | None
    duration_seconds: int | None
    notes: str | None


@dataclass
class ExerciseSetInput:
    """One exercise set submitted for a custom workout."""

    exercise_id: str
    set_number: int
    reps: int | None = None
    weight_kg: float | None = None
    duration_seconds: int | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExerciseSetInput:
        return cls(
            exercise_id=_require(data, "exercise_id"),
            set_number=int(_require(data, "set_number")),
            reps=data.get("reps"),
            weight_kg=data.get("weight_kg"),
            duration_seconds=data.get("duration_seconds"),
            notes=data.get("notes"),
        )