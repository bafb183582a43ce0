"""Server-side operations behind the exercise library and user administration."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator

from gritwit.auth import AuthUser, ServerError, Session, UserRole, require_role
from gritwit.models import Exercise
from gritwit.store import Store, StoreError

_ASSIGNABLE_ROLES = ("athlete", "coach", "admin")


@contextmanager
def _store_errors() -> Iterator[None]:
    """Report storage failures to the caller as ServerError."""
    try:
        yield
    except StoreError as exc:
        raise ServerError(str(exc)) from None


def _parse_uuid(value: object) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ServerError(str(exc)) from None


def _blank_to_none(value: str) -> str | None:
    return value or None


# ---- exercises ----


def list_exercises(store: Store) -> list[Exercise]:
    """Every exercise in the library, ordered by name."""
    with _store_errors():
        return store.list_exercises()


def create_exercise(
    store: Store,
    session: Session,
    name: str,
    category: str,
    movement_type: str = "",
    description: str = "",
    demo_video_url: str = "",
) -> str:
    """Add an exercise as the signed-in coach; empty fields are stored as absent.

    Returns the new exercise's id.
    """
    user = require_role(session, store, UserRole.COACH)
    creator = _parse_uuid(user.id)
    with _store_errors():
        return store.create_exercise(
            name,
            category,
            _blank_to_none(movement_type),
            [],
            _blank_to_none(description),
            _blank_to_none(demo_video_url),
            creator,
        )


def update_exercise(
    store: Store,
    session: Session,
    exercise_id: str,
    name: str,
    category: str,
    movement_type: str = "",
    description: str = "",
    demo_video_url: str = "",
) -> None:
    """Change an exercise as a coach; empty fields are stored as absent."""
    require_role(session, store, UserRole.COACH)
    key = _parse_uuid(exercise_id)
    with _store_errors():
        store.update_exercise(
            key,
            name,
            category,
            _blank_to_none(movement_type),
            _blank_to_none(description),
            _blank_to_none(demo_video_url),
        )


def delete_exercise(store: Store, session: Session, exercise_id: str) -> None:
    """Remove an exercise as a coach."""
    require_role(session, store, UserRole.COACH)
    key = _parse_uuid(exercise_id)
    with _store_errors():
        store.delete_exercise(key)


def filter_exercises(
    exercises: Iterable[Exercise], categories: Iterable[str]
) -> list[Exercise]:
    """Exercises in any of ``categories``; all of them when none are given."""
    wanted = set(categories)
    items = list(exercises)
    if not wanted:
        return items
    return [exercise for exercise in items if exercise.category in wanted]


def is_coach(user: AuthUser | None) -> bool:
    """Whether the user may manage the exercise library."""
    return user is not None and user.role in (UserRole.COACH, UserRole.ADMIN)


# ---- administration ----


def list_all_users(store: Store, session: Session) -> list[AuthUser]:
    """Every user in sign-up order; admins only."""
    require_role(session, store, UserRole.ADMIN)
    with _store_errors():
        return store.list_users()


def change_user_role(store: Store, session: Session, user_id: str, new_role: str) -> None:
    """Set a user's role; admins only, and only to a known role."""
    require_role(session, store, UserRole.ADMIN)
    key = _parse_uuid(user_id)
    if new_role not in _ASSIGNABLE_ROLES:
        raise ServerError("Invalid role")
    with _store_errors():
        store.update_user_role(key, new_role)


@dataclass(frozen=True)
class RoleAction:
    """The role change offered for a user in the admin list."""

    label: str
    new_role: UserRole
    css_class: str


_PROMOTE = RoleAction("Make Coach", UserRole.COACH, "role-btn--promote")
_DEMOTE = RoleAction("Demote", UserRole.ATHLETE, "role-btn--demote")


def role_action(user: AuthUser) -> RoleAction | None:
    """Coaches may be demoted, athletes promoted; admins are left alone."""
    if user.role is UserRole.ADMIN:
        return None
    if user.role is UserRole.COACH:
        return _DEMOTE
    return _PROMOTE