"""Storage for programmed workouts (WODs), their sections, movements and scores."""

from __future__ import annotations

import datetime as dt
import sqlite3
import uuid
from typing import Iterable, Sequence

from gritwit import scoring
from gritwit.models import (
    MovementLog,
    MovementLogWithName,
    PersonalBest,
    SectionLeaderboardEntry,
    SectionLog,
    SectionScoreInput,
    SectionScoreWithMeta,
    Wod,
    WodMovement,
    WodSection,
)
from gritwit.store import (
    Store,
    StoreError,
    _as_uuid,
    _date_text,
    _new_id,
    _now,
    _optional_uuid,
)

_WOD_COLUMNS = (
    "id, title, description, workout_type, time_cap_minutes, programmed_date"
)
_SECTION_COLUMNS = (
    "id, wod_id, phase, title, section_type, time_cap_minutes, rounds, notes, sort_order"
)
_MOVEMENT_SELECT = (
    "SELECT wm.id, wm.section_id, wm.exercise_id, e.name AS exercise_name,"
    " wm.rep_scheme, wm.weight_kg_male, wm.weight_kg_female, wm.notes, wm.sort_order"
    " FROM wod_movements wm JOIN exercises e ON e.id = wm.exercise_id"
)
_MOVEMENT_LOG_SELECT = (
    "SELECT ml.id, ml.section_log_id, ml.movement_id, ml.reps, ml.sets,"
    " ml.weight_kg, ml.notes FROM movement_logs ml"
)

Id = uuid.UUID | str


def _parse_id(value: object, field_name: str) -> str:
    try:
        return _as_uuid(value)
    except ValueError as exc:
        raise StoreError(f"Invalid {field_name}: {exc}") from None


def _wod(row: sqlite3.Row) -> Wod:
    return Wod(**dict(row))


def _section(row: sqlite3.Row) -> WodSection:
    return WodSection(**dict(row))


def _movement(row: sqlite3.Row) -> WodMovement:
    return WodMovement(**dict(row))


def _movement_log(row: sqlite3.Row) -> MovementLog:
    return MovementLog(**dict(row))


class WodStore(Store):
    """Application data including WOD programming and section scoring."""

    # ---- WODs ----

    def list_wods(self) -> list[Wod]:
        rows = self._fetch_all(
            f"SELECT {_WOD_COLUMNS} FROM wods"
            " ORDER BY programmed_date DESC, created_at DESC, rowid DESC"
        )
        return [_wod(row) for row in rows]

    def list_wods_for_date(self, date: dt.date | str) -> list[Wod]:
        rows = self._fetch_all(
            f"SELECT {_WOD_COLUMNS} FROM wods WHERE programmed_date = ?"
            " ORDER BY created_at ASC, rowid ASC",
            (_date_text(date),),
        )
        return [_wod(row) for row in rows]

    def create_wod(
        self,
        title: str,
        description: str | None,
        workout_type: str,
        time_cap_minutes: int | None,
        programmed_date: dt.date | str,
        created_by: Id | None = None,
    ) -> str:
        """Insert a WOD and return the new id."""
        day = _date_text(programmed_date)
        wod_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO wods (id, title, description, workout_type, time_cap_minutes,"
                " programmed_date, created_by, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (wod_id, title, description, workout_type, time_cap_minutes, day,
                 _optional_uuid(created_by), _now()),
            )
        return wod_id

    def update_wod(
        self,
        wod_id: Id,
        title: str,
        description: str | None,
        workout_type: str,
        time_cap_minutes: int | None,
        programmed_date: dt.date | str,
    ) -> None:
        day = _date_text(programmed_date)
        with self._transaction() as conn:
            conn.execute(
                "UPDATE wods SET title = ?, description = ?, workout_type = ?,"
                " time_cap_minutes = ?, programmed_date = ? WHERE id = ?",
                (title, description, workout_type, time_cap_minutes, day, _as_uuid(wod_id)),
            )

    def delete_wod(self, wod_id: Id) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM wods WHERE id = ?", (_as_uuid(wod_id),))

    def get_wod_with_sections(self, wod_id: Id) -> tuple[Wod, list[WodSection]]:
        """A WOD and its sections; raises RowNotFound for an unknown id."""
        row = self._fetch_one(
            f"SELECT {_WOD_COLUMNS} FROM wods WHERE id = ?", (_as_uuid(wod_id),)
        )
        return _wod(row), self.list_wod_sections(wod_id)

    # ---- sections ----

    def list_wod_sections(self, wod_id: Id) -> list[WodSection]:
        rows = self._fetch_all(
            f"SELECT {_SECTION_COLUMNS} FROM wod_sections WHERE wod_id = ?"
            " ORDER BY sort_order, created_at, rowid",
            (_as_uuid(wod_id),),
        )
        return [_section(row) for row in rows]

    def create_wod_section(
        self,
        wod_id: Id,
        phase: str,
        title: str | None,
        section_type: str,
        time_cap_minutes: int | None,
        rounds: int | None,
        notes: str | None,
        sort_order: int,
    ) -> str:
        """Insert a section into a WOD and return the new id."""
        section_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO wod_sections (id, wod_id, phase, title, section_type,"
                " time_cap_minutes, rounds, notes, sort_order, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (section_id, _as_uuid(wod_id), phase, title, section_type,
                 time_cap_minutes, rounds, notes, sort_order, _now()),
            )
        return section_id

    def update_wod_section(
        self,
        section_id: Id,
        phase: str,
        title: str | None,
        section_type: str,
        time_cap_minutes: int | None,
        rounds: int | None,
        notes: str | None,
    ) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE wod_sections SET phase = ?, title = ?, section_type = ?,"
                " time_cap_minutes = ?, rounds = ?, notes = ? WHERE id = ?",
                (phase, title, section_type, time_cap_minutes, rounds, notes,
                 _as_uuid(section_id)),
            )

    def delete_wod_section(self, section_id: Id) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM wod_sections WHERE id = ?", (_as_uuid(section_id),))

    # ---- movements ----

    def get_wod_movements(self, section_id: Id) -> list[WodMovement]:
        rows = self._fetch_all(
            f"{_MOVEMENT_SELECT} WHERE wm.section_id = ?"
            " ORDER BY wm.sort_order, wm.created_at, wm.rowid",
            (_as_uuid(section_id),),
        )
        return [_movement(row) for row in rows]

    def get_all_wod_movements(self, wod_id: Id) -> list[WodMovement]:
        """Movements of every section of a WOD, in section then movement order."""
        rows = self._fetch_all(
            f"{_MOVEMENT_SELECT} JOIN wod_sections ws ON ws.id = wm.section_id"
            " WHERE ws.wod_id = ?"
            " ORDER BY ws.sort_order, ws.rowid, wm.sort_order, wm.created_at, wm.rowid",
            (_as_uuid(wod_id),),
        )
        return [_movement(row) for row in rows]

    def add_wod_movement(
        self,
        section_id: Id,
        exercise_id: Id,
        rep_scheme: str | None,
        weight_kg_male: float | None,
        weight_kg_female: float | None,
        notes: str | None,
        sort_order: int,
    ) -> str:
        """Add a movement to a section and return the new id."""
        movement_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO wod_movements (id, section_id, exercise_id, rep_scheme,"
                " weight_kg_male, weight_kg_female, notes, sort_order, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (movement_id, _as_uuid(section_id), _as_uuid(exercise_id), rep_scheme,
                 weight_kg_male, weight_kg_female, notes, sort_order, _now()),
            )
        return movement_id

    def update_wod_movement(
        self,
        movement_id: Id,
        exercise_id: Id,
        rep_scheme: str | None,
        weight_kg_male: float | None,
        weight_kg_female: float | None,
        notes: str | None,
    ) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE wod_movements SET exercise_id = ?, rep_scheme = ?,"
                " weight_kg_male = ?, weight_kg_female = ?, notes = ? WHERE id = ?",
                (_as_uuid(exercise_id), rep_scheme, weight_kg_male, weight_kg_female,
                 notes, _as_uuid(movement_id)),
            )

    def delete_wod_movement(self, movement_id: Id) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM wod_movements WHERE id = ?", (_as_uuid(movement_id),))

    # ---- scores ----

    def submit_wod_score(
        self,
        user_id: Id,
        wod_id: Id,
        workout_date: dt.date | str,
        notes: str | None,
        sections: Iterable[tuple[SectionScoreInput, str]],
    ) -> str:
        """Save a workout log with its section and movement results atomically.

        ``sections`` pairs each submitted score with its section's type. The
        log counts as RX only when every section that was not skipped is RX.
        """
        day = _date_text(workout_date)
        scored: Sequence[tuple[SectionScoreInput, str]] = list(sections)
        is_rx = scoring.overall_rx(entry for entry, _ in scored)
        owner = _as_uuid(user_id)
        wod_key = _as_uuid(wod_id)
        log_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO workout_logs (id, user_id, wod_id, workout_date, notes, is_rx,"
                " created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (log_id, owner, wod_key, day, notes, int(is_rx), _now()),
            )
            for entry, section_type in scored:
                section_key = _parse_id(entry.section_id, "section_id")
                score_value = None if entry.skipped else scoring.compute_score_value(
                    section_type,
                    entry.finish_time_seconds,
                    entry.rounds_completed,
                    entry.extra_reps,
                    entry.weight_kg,
                )
                section_log_id = _new_id()
                conn.execute(
                    "INSERT INTO section_logs (id, workout_log_id, section_id,"
                    " finish_time_seconds, rounds_completed, extra_reps, weight_kg, notes,"
                    " is_rx, skipped, score_value, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (section_log_id, log_id, section_key, entry.finish_time_seconds,
                     entry.rounds_completed, entry.extra_reps, entry.weight_kg, entry.notes,
                     int(entry.is_rx), int(entry.skipped), score_value, _now()),
                )
                for result in entry.movement_logs:
                    movement_key = _parse_id(result.movement_id, "movement_id")
                    conn.execute(
                        "INSERT INTO movement_logs (id, section_log_id, movement_id, reps,"
                        " sets, weight_kg, notes, created_at)"
                        " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                        (_new_id(), section_log_id, movement_key, result.reps, result.sets,
                         result.weight_kg, result.notes, _now()),
                    )
        return log_id

    def get_section_logs(self, workout_log_id: Id) -> list[SectionLog]:
        rows = self._fetch_all(
            "SELECT id, workout_log_id, section_id, finish_time_seconds, rounds_completed,"
            " extra_reps, weight_kg, notes, is_rx, skipped, score_value"
            " FROM section_logs WHERE workout_log_id = ? ORDER BY created_at, rowid",
            (_as_uuid(workout_log_id),),
        )
        return [
            SectionLog(**{**dict(row), "is_rx": bool(row["is_rx"]),
                          "skipped": bool(row["skipped"])})
            for row in rows
        ]

    def get_movement_logs(self, section_log_id: Id) -> list[MovementLog]:
        rows = self._fetch_all(
            f"{_MOVEMENT_LOG_SELECT} WHERE ml.section_log_id = ?"
            " ORDER BY ml.created_at, ml.rowid",
            (_as_uuid(section_log_id),),
        )
        return [_movement_log(row) for row in rows]

    def get_movement_logs_for_workout(self, workout_log_id: Id) -> list[MovementLog]:
        rows = self._fetch_all(
            f"{_MOVEMENT_LOG_SELECT} JOIN section_logs sl ON sl.id = ml.section_log_id"
            " WHERE sl.workout_log_id = ? ORDER BY ml.created_at, ml.rowid",
            (_as_uuid(workout_log_id),),
        )
        return [_movement_log(row) for row in rows]

    def get_section_scores_with_meta(self, workout_log_id: Id) -> list[SectionScoreWithMeta]:
        """Section scores of a log with each section's type and title."""
        rows = self._fetch_all(
            "SELECT sl.id AS section_log_id, ws.section_type, ws.title AS section_title,"
            " sl.finish_time_seconds, sl.rounds_completed, sl.extra_reps, sl.weight_kg,"
            " sl.is_rx, sl.skipped"
            " FROM section_logs sl JOIN wod_sections ws ON ws.id = sl.section_id"
            " WHERE sl.workout_log_id = ? ORDER BY ws.sort_order, ws.rowid",
            (_as_uuid(workout_log_id),),
        )
        return [
            SectionScoreWithMeta(**{**dict(row), "is_rx": bool(row["is_rx"]),
                                    "skipped": bool(row["skipped"])})
            for row in rows
        ]

    def get_movement_logs_with_names(self, workout_log_id: Id) -> list[MovementLogWithName]:
        """Movement results of a log with the exercise names."""
        rows = self._fetch_all(
            "SELECT ml.section_log_id, e.name AS exercise_name, ml.reps, ml.sets,"
            " ml.weight_kg, ml.notes"
            " FROM movement_logs ml"
            " JOIN wod_movements wm ON wm.id = ml.movement_id"
            " JOIN exercises e ON e.id = wm.exercise_id"
            " JOIN section_logs sl ON sl.id = ml.section_log_id"
            " WHERE sl.workout_log_id = ? ORDER BY sl.id, ml.created_at, ml.rowid",
            (_as_uuid(workout_log_id),),
        )
        return [MovementLogWithName(**dict(row)) for row in rows]

    def section_leaderboard(
        self, section_id: Id, section_type: str, limit: int
    ) -> list[SectionLeaderboardEntry]:
        """Best scores for a section: RX first, then by score for its type."""
        order = scoring.score_order(section_type)
        rows = self._fetch_all(
            "SELECT u.display_name, u.avatar_url, sl.score_value, sl.is_rx,"
            " sl.finish_time_seconds, sl.rounds_completed, sl.extra_reps, sl.weight_kg"
            " FROM section_logs sl"
            " JOIN workout_logs wl ON wl.id = sl.workout_log_id"
            " JOIN users u ON u.id = wl.user_id"
            " WHERE sl.section_id = ? AND sl.score_value IS NOT NULL"
            f" ORDER BY sl.is_rx DESC, sl.score_value {order}, sl.rowid"
            " LIMIT ?",
            (_as_uuid(section_id), limit),
        )
        return [
            SectionLeaderboardEntry(**{**dict(row), "is_rx": bool(row["is_rx"])})
            for row in rows
        ]

    def personal_best_for_section(
        self, user_id: Id, section_id: Id, section_type: str
    ) -> PersonalBest | None:
        """The user's best score on a section, or None if they have none."""
        order = scoring.score_order(section_type)
        rows = self._fetch_all(
            "SELECT sl.score_value, sl.is_rx, sl.created_at"
            " FROM section_logs sl JOIN workout_logs wl ON wl.id = sl.workout_log_id"
            " WHERE sl.section_id = ? AND wl.user_id = ? AND sl.score_value IS NOT NULL"
            f" ORDER BY sl.is_rx DESC, sl.score_value {order}, sl.rowid"
            " LIMIT 1",
            (_as_uuid(section_id), _as_uuid(user_id)),
        )
        if not rows:
            return None
        row = rows[0]
        return PersonalBest(
            score_value=row["score_value"],
            is_rx=bool(row["is_rx"]),
            logged_at=row["created_at"],
        )

    def has_wod_score(
        self, user_id: Id, wod_id: Id, workout_date: dt.date | str
    ) -> str | None:
        """Id of the user's log for this WOD on that date, if there is one."""
        day = _date_text(workout_date)
        rows = self._fetch_all(
            "SELECT id FROM workout_logs"
            " WHERE user_id = ? AND wod_id = ? AND workout_date = ? ORDER BY rowid LIMIT 1",
            (_as_uuid(user_id), _as_uuid(wod_id), day),
        )
        return rows[0]["id"] if rows else None