"""SQLite-backed storage for users, exercises and workout logs."""

from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from os import PathLike
from typing import Iterable, Iterator, Sequence

from gritwit import scoring
from gritwit.auth import AuthUser, UserRole
from gritwit.models import (
    Exercise,
    ExerciseSetInput,
    LeaderboardEntry,
    WorkoutExercise,
    WorkoutLog,
)


class StoreError(Exception):
    """A storage operation failed."""


class RowNotFound(StoreError):
    """A row that the operation needs does not exist."""

    def __init__(self, message: str = "no rows returned") -> None:
        super().__init__(message)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    google_id TEXT UNIQUE,
    email TEXT UNIQUE,
    phone TEXT UNIQUE,
    display_name TEXT NOT NULL,
    avatar_url TEXT,
    role TEXT NOT NULL DEFAULT 'athlete'
        CHECK (role IN ('athlete', 'coach', 'admin')),
    gender TEXT,
    password_hash TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS exercises (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    movement_type TEXT,
    muscle_groups TEXT NOT NULL DEFAULT '[]',
    description TEXT,
    demo_video_url TEXT,
    created_by TEXT REFERENCES users(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS wods (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    workout_type TEXT NOT NULL,
    time_cap_minutes INTEGER,
    programmed_date TEXT NOT NULL,
    created_by TEXT REFERENCES users(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS wod_sections (
    id TEXT PRIMARY KEY,
    wod_id TEXT NOT NULL REFERENCES wods(id) ON DELETE CASCADE,
    phase TEXT NOT NULL,
    title TEXT,
    section_type TEXT NOT NULL,
    time_cap_minutes INTEGER,
    rounds INTEGER,
    notes TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS wod_movements (
    id TEXT PRIMARY KEY,
    section_id TEXT NOT NULL REFERENCES wod_sections(id) ON DELETE CASCADE,
    exercise_id TEXT NOT NULL REFERENCES exercises(id),
    rep_scheme TEXT,
    weight_kg_male REAL,
    weight_kg_female REAL,
    notes TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS workout_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    wod_id TEXT REFERENCES wods(id) ON DELETE SET NULL,
    workout_date TEXT NOT NULL,
    notes TEXT,
    is_rx INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS section_logs (
    id TEXT PRIMARY KEY,
    workout_log_id TEXT NOT NULL REFERENCES workout_logs(id) ON DELETE CASCADE,
    section_id TEXT NOT NULL REFERENCES wod_sections(id) ON DELETE CASCADE,
    finish_time_seconds INTEGER,
    rounds_completed INTEGER,
    extra_reps INTEGER,
    weight_kg REAL,
    notes TEXT,
    is_rx INTEGER NOT NULL DEFAULT 0,
    skipped INTEGER NOT NULL DEFAULT 0,
    score_value INTEGER,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS movement_logs (
    id TEXT PRIMARY KEY,
    section_log_id TEXT NOT NULL REFERENCES section_logs(id) ON DELETE CASCADE,
    movement_id TEXT NOT NULL REFERENCES wod_movements(id) ON DELETE CASCADE,
    reps INTEGER,
    sets INTEGER,
    weight_kg REAL,
    notes TEXT,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS workout_exercises (
    id TEXT PRIMARY KEY,
    workout_log_id TEXT NOT NULL REFERENCES workout_logs(id) ON DELETE CASCADE,
    exercise_id TEXT NOT NULL REFERENCES exercises(id),
    set_number INTEGER NOT NULL,
    reps INTEGER,
    weight_kg REAL,
    duration_seconds INTEGER,
    notes TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
"""

_USER_COLUMNS = "id, email, phone, display_name, avatar_url, role, gender"
_LOG_COLUMNS = "id, workout_date, notes, is_rx, wod_id"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_uuid(value: object) -> str:
    """Canonical text form of a UUID given as a UUID or a string."""
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValueError(f"invalid id: {value!r}") from None


def _optional_uuid(value: object | None) -> str | None:
    return None if value is None else _as_uuid(value)


def _date_text(value: date | str) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return scoring.parse_date(value).isoformat()
    except ValueError as exc:
        raise StoreError(str(exc)) from None


def _user_from_row(row: sqlite3.Row) -> AuthUser:
    return AuthUser(
        id=row["id"],
        email=row["email"],
        phone=row["phone"],
        display_name=row["display_name"],
        avatar_url=row["avatar_url"],
        role=UserRole.parse(row["role"]),
        gender=row["gender"],
    )


def _log_from_row(row: sqlite3.Row) -> WorkoutLog:
    return WorkoutLog(
        id=row["id"],
        workout_date=row["workout_date"],
        notes=row["notes"],
        is_rx=bool(row["is_rx"]),
        wod_id=row["wod_id"],
    )


class Store:
    """Persistent application data held in one SQLite database."""

    def __init__(
        self,
        path: str | PathLike[str] = ":memory:",
        hidden_emails: Iterable[str] = (),
    ) -> None:
        self.hidden_emails = tuple(hidden_emails)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements atomically, turning database errors into StoreError."""
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    def _fetch_all(self, sql: str, params: Sequence[object] = ()) -> list[sqlite3.Row]:
        with self._transaction() as conn:
            return conn.execute(sql, params).fetchall()

    def _fetch_one(self, sql: str, params: Sequence[object] = ()) -> sqlite3.Row:
        with self._transaction() as conn:
            row = conn.execute(sql, params).fetchone()
        if row is None:
            raise RowNotFound()
        return row

    # ---- users ----

    def create_user(
        self,
        display_name: str,
        email: str | None = None,
        phone: str | None = None,
        avatar_url: str | None = None,
        role: UserRole | str = UserRole.ATHLETE,
        gender: str | None = None,
    ) -> str:
        """Insert a user and return the new id."""
        user_id = _new_id()
        now = _now()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO users (id, email, phone, display_name, avatar_url, role,"
                " gender, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (user_id, email, phone, display_name, avatar_url, str(role), gender, now, now),
            )
        return user_id

    def get_user_by_id(self, user_id: uuid.UUID | str) -> AuthUser:
        row = self._fetch_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (_as_uuid(user_id),)
        )
        return _user_from_row(row)

    def list_users(self) -> list[AuthUser]:
        rows = self._fetch_all(f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at, rowid")
        return [_user_from_row(row) for row in rows]

    def update_user_role(self, user_id: uuid.UUID | str, new_role: UserRole | str) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE users SET role = ?, updated_at = ? WHERE id = ?",
                (str(new_role), _now(), _as_uuid(user_id)),
            )

    def update_user_profile(
        self,
        user_id: uuid.UUID | str,
        display_name: str,
        email: str | None = None,
        phone: str | None = None,
        gender: str | None = None,
    ) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE users SET display_name = ?, email = ?, phone = ?, gender = ?,"
                " updated_at = ? WHERE id = ?",
                (display_name, email, phone, gender, _now(), _as_uuid(user_id)),
            )

    # ---- exercises ----

    def list_exercises(self) -> list[Exercise]:
        rows = self._fetch_all(
            "SELECT id, name, category, movement_type, muscle_groups, description,"
            " demo_video_url FROM exercises ORDER BY name, rowid"
        )
        return [
            Exercise(
                id=row["id"],
                name=row["name"],
                category=row["category"],
                movement_type=row["movement_type"],
                muscle_groups=json.loads(row["muscle_groups"]),
                description=row["description"],
                demo_video_url=row["demo_video_url"],
            )
            for row in rows
        ]

    def create_exercise(
        self,
        name: str,
        category: str,
        movement_type: str | None = None,
        muscle_groups: Iterable[str] = (),
        description: str | None = None,
        demo_video_url: str | None = None,
        created_by: uuid.UUID | str | None = None,
    ) -> str:
        """Insert an exercise and return the new id."""
        exercise_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO exercises (id, name, category, movement_type, muscle_groups,"
                " description, demo_video_url, created_by, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    exercise_id,
                    name,
                    category,
                    movement_type,
                    json.dumps(list(muscle_groups)),
                    description,
                    demo_video_url,
                    _optional_uuid(created_by),
                    _now(),
                ),
            )
        return exercise_id

    def delete_exercise(self, exercise_id: uuid.UUID | str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM exercises WHERE id = ?", (_as_uuid(exercise_id),))

    def update_exercise(
        self,
        exercise_id: uuid.UUID | str,
        name: str,
        category: str,
        movement_type: str | None = None,
        description: str | None = None,
        demo_video_url: str | None = None,
    ) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE exercises SET name = ?, category = ?, movement_type = ?,"
                " description = ?, demo_video_url = ? WHERE id = ?",
                (name, category, movement_type, description, demo_video_url,
                 _as_uuid(exercise_id)),
            )

    # ---- workout logs ----

    def list_workout_logs(self, user_id: uuid.UUID | str, limit: int) -> list[WorkoutLog]:
        rows = self._fetch_all(
            f"SELECT {_LOG_COLUMNS} FROM workout_logs WHERE user_id = ?"
            " ORDER BY workout_date DESC, created_at DESC, rowid DESC LIMIT ?",
            (_as_uuid(user_id), limit),
        )
        return [_log_from_row(row) for row in rows]

    def create_workout_log(
        self,
        user_id: uuid.UUID | str,
        wod_id: uuid.UUID | str | None,
        workout_date: date | str,
        notes: str | None = None,
        is_rx: bool = False,
    ) -> str:
        """Insert a workout log and return the new id."""
        day = _date_text(workout_date)
        log_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO workout_logs (id, user_id, wod_id, workout_date, notes, is_rx,"
                " created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (log_id, _as_uuid(user_id), _optional_uuid(wod_id), day, notes,
                 int(is_rx), _now()),
            )
        return log_id

    def list_workouts_by_date(
        self, user_id: uuid.UUID | str, date: date | str
    ) -> list[WorkoutLog]:
        rows = self._fetch_all(
            f"SELECT {_LOG_COLUMNS} FROM workout_logs WHERE user_id = ? AND workout_date = ?"
            " ORDER BY created_at DESC, rowid DESC",
            (_as_uuid(user_id), _date_text(date)),
        )
        return [_log_from_row(row) for row in rows]

    # ---- stats ----

    def count_exercises(self) -> int:
        return self._fetch_one("SELECT COUNT(*) FROM exercises")[0]

    def count_workouts(self, user_id: uuid.UUID | str) -> int:
        return self._fetch_one(
            "SELECT COUNT(*) FROM workout_logs WHERE user_id = ?", (_as_uuid(user_id),)
        )[0]

    def streak_days(self, user_id: uuid.UUID | str, today: date | None = None) -> int:
        """Consecutive days with a workout, ending today or yesterday."""
        today = today or date.today()
        rows = self._fetch_all(
            "SELECT DISTINCT workout_date FROM workout_logs"
            " WHERE user_id = ? AND workout_date <= ? ORDER BY workout_date DESC",
            (_as_uuid(user_id), today.isoformat()),
        )
        return scoring.streak_days(
            (date.fromisoformat(row["workout_date"]) for row in rows), today
        )

    def leaderboard(
        self,
        limit: int,
        viewer_email: str,
        is_viewer_admin: bool,
        today: date | None = None,
    ) -> list[LeaderboardEntry]:
        """Workout counts for the current week, most active first.

        Users whose email is in ``hidden_emails`` are left out unless the
        viewer is an admin or is that user.
        """
        today = today or date.today()
        week_start = today - timedelta(days=today.weekday())
        placeholders = ", ".join("?" for _ in self.hidden_emails)
        rows = self._fetch_all(
            "SELECT u.display_name, u.avatar_url, COUNT(wl.id) AS workout_count"
            " FROM users u"
            " LEFT JOIN workout_logs wl ON wl.user_id = u.id AND wl.workout_date >= ?"
            f" WHERE (? OR u.email = ? OR u.email NOT IN ({placeholders}))"
            " GROUP BY u.id, u.display_name, u.avatar_url"
            " HAVING COUNT(wl.id) > 0"
            " ORDER BY workout_count DESC, u.rowid"
            " LIMIT ?",
            (week_start.isoformat(), int(is_viewer_admin), viewer_email,
             *self.hidden_emails, limit),
        )
        return [
            LeaderboardEntry(
                display_name=row["display_name"],
                avatar_url=row["avatar_url"],
                workout_count=row["workout_count"],
            )
            for row in rows
        ]

    # ---- custom workouts ----

    @staticmethod
    def _insert_sets(
        conn: sqlite3.Connection, log_id: str, exercises: Iterable[ExerciseSetInput]
    ) -> None:
        for item in exercises:
            try:
                exercise_id = _as_uuid(item.exercise_id)
            except ValueError as exc:
                raise StoreError(f"Invalid exercise_id: {exc}") from None
            conn.execute(
                "INSERT INTO workout_exercises (id, workout_log_id, exercise_id, set_number,"
                " reps, weight_kg, duration_seconds, notes, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (_new_id(), log_id, exercise_id, item.set_number, item.reps,
                 item.weight_kg, item.duration_seconds, item.notes, _now()),
            )

    def submit_custom_workout(
        self,
        user_id: uuid.UUID | str,
        workout_date: date | str,
        notes: str | None,
        exercises: Iterable[ExerciseSetInput],
    ) -> str:
        """Save a workout log and its exercise sets atomically; return the log id."""
        day = _date_text(workout_date)
        owner = _as_uuid(user_id)
        log_id = _new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO workout_logs (id, user_id, workout_date, notes, is_rx, created_at)"
                " VALUES (?, ?, ?, ?, 1, ?)",
                (log_id, owner, day, notes, _now()),
            )
            self._insert_sets(conn, log_id, exercises)
        return log_id

    def list_workout_exercises(self, workout_log_id: uuid.UUID | str) -> list[WorkoutExercise]:
        rows = self._fetch_all(
            "SELECT we.id, we.exercise_id, e.name AS exercise_name, we.set_number, we.reps,"
            " we.weight_kg, we.duration_seconds, we.notes"
            " FROM workout_exercises we JOIN exercises e ON e.id = we.exercise_id"
            " WHERE we.workout_log_id = ?"
            " ORDER BY we.sort_order, we.set_number, we.rowid",
            (_as_uuid(workout_log_id),),
        )
        return [WorkoutExercise(**dict(row)) for row in rows]

    def update_custom_workout(
        self,
        log_id: uuid.UUID | str,
        user_id: uuid.UUID | str,
        workout_date: date | str,
        notes: str | None,
        exercises: Iterable[ExerciseSetInput],
    ) -> None:
        """Replace a user's custom workout's date, notes and exercise sets."""
        day = _date_text(workout_date)
        log_key = _as_uuid(log_id)
        owner = _as_uuid(user_id)
        with self._transaction() as conn:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM workout_logs WHERE id = ? AND user_id = ?",
                (log_key, owner),
            ).fetchone()
            if count == 0:
                raise RowNotFound()
            conn.execute(
                "UPDATE workout_logs SET workout_date = ?, notes = ? WHERE id = ?",
                (day, notes, log_key),
            )
            conn.execute("DELETE FROM workout_exercises WHERE workout_log_id = ?", (log_key,))
            self._insert_sets(conn, log_key, exercises)

    def delete_workout_log(self, log_id: uuid.UUID | str, user_id: uuid.UUID | str) -> None:
        """Delete a user's workout log and everything recorded under it."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM workout_logs WHERE id = ? AND user_id = ?",
                (_as_uuid(log_id), _as_uuid(user_id)),
            )
            if cursor.rowcount == 0:
                raise RowNotFound()