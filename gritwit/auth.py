"""User identity, roles and session-based access checks."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, MutableMapping, Protocol

logger = logging.getLogger(__name__)

USER_ID_KEY = "user_id"

_ERROR_PREFIXES = ("error running server function: ", "ServerFnError: ")


class ServerError(Exception):
    """A failure reported back to the client by a server-side call."""


def clean_error(message: object) -> str:
    """Strip internal prefixes from an error message for display."""
    raw = str(message)
    for prefix in _ERROR_PREFIXES:
        if raw.startswith(prefix):
            return raw[len(prefix):]
    return raw


class OtpResult(Enum):
    NEW_ACCOUNT = "NewAccount"
    EXISTING = "Existing"


class UserRole(Enum):
    ATHLETE = "athlete"
    COACH = "coach"
    ADMIN = "admin"

    def rank(self) -> int:
        """Privilege level: athlete < coach < admin."""
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str) -> UserRole:
        """Map a stored role name to a role; unknown names become athlete."""
        if value == "admin":
            return cls.ADMIN
        if value == "coach":
            return cls.COACH
        return cls.ATHLETE

    def __str__(self) -> str:
        return self.value


_RANKS = {UserRole.ATHLETE: 0, UserRole.COACH: 1, UserRole.ADMIN: 2}


@dataclass
class AuthUser:
    id: str
    display_name: str
    email: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    role: UserRole = UserRole.ATHLETE
    gender: str | None = None

    def initials(self) -> str:
        """Upper-cased first letters of the first two words of the name."""
        return "".join(word[0] for word in self.display_name.split()[:2]).upper()

    def identifier(self) -> str:
        """The best available identifier: email, then phone, else empty."""
        if self.email is not None:
            return self.email
        return self.phone if self.phone is not None else ""


class _UserLookup(Protocol):
    def get_user_by_id(self, user_id: Any) -> AuthUser: ...


Session = MutableMapping[str, Any]


def current_user(session: Session, store: _UserLookup) -> AuthUser | None:
    """The user whose id is stored in the session, or None."""
    raw = session.get(USER_ID_KEY)
    logger.info("current_user: user_id=%r", raw)
    if raw is None:
        return None
    try:
        user_uuid = uuid.UUID(str(raw))
    except ValueError as exc:
        raise ServerError(str(exc)) from None
    try:
        return store.get_user_by_id(user_uuid)
    except Exception:  # any lookup failure means "not signed in"
        logger.exception("get_user_by_id failed")
        return None


def require_auth(session: Session, store: _UserLookup) -> AuthUser:
    """The signed-in user; raises ServerError when there is none."""
    user = current_user(session, store)
    if user is None:
        raise ServerError("Unauthorized")
    return user


def require_role(session: Session, store: _UserLookup, min_role: UserRole) -> AuthUser:
    """The signed-in user, provided their role is at least ``min_role``."""
    user = require_auth(session, store)
    if user.role.rank() < min_role.rank():
        raise ServerError("Insufficient permissions")
    return user


def auth_context(session: Session, store: _UserLookup) -> tuple[AuthUser, uuid.UUID]:
    """The signed-in user together with their id parsed as a UUID."""
    user = require_auth(session, store)
    try:
        user_uuid = uuid.UUID(user.id)
    except ValueError as exc:
        raise ServerError(str(exc)) from None
    return user, user_uuid


def set_user_id(session: Session, user_id: object) -> None:
    """Record the signed-in user's id in the session."""
    session[USER_ID_KEY] = str(user_id)


def clear_session(session: Session) -> None:
    """Forget everything held in the session."""
    session.clear()