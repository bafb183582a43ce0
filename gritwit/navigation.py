"""Page routing and navigation state for the application shell."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from gritwit.auth import AuthUser


@dataclass(frozen=True)
class NavTab:
    """One entry of the bottom navigation bar."""

    href: str
    label: str
    icon: str
    active: bool


class Page(Enum):
    HOME = "home"
    EXERCISES = "exercises"
    WOD = "wod"
    LOGIN = "login"
    LOG_WORKOUT = "log"
    HISTORY = "history"
    PROFILE = "profile"
    ADMIN = "admin"
    NOT_FOUND = "not_found"


_TABS = (
    ("/", "Home", "home"),
    ("/exercises", "Exercises", "exercises"),
    ("/wod", "WOD", "wod"),
    ("/log", "Log", "plus"),
    ("/history", "History", "history"),
)
_ADMIN_TAB = ("/admin", "Admin", "admin")

_PUBLIC_PAGES = {
    "exercises": Page.EXERCISES,
    "wod": Page.WOD,
    "login": Page.LOGIN,
}
_GATED_PAGES = {
    "": Page.HOME,
    "log": Page.LOG_WORKOUT,
    "history": Page.HISTORY,
    "profile": Page.PROFILE,
    "admin": Page.ADMIN,
}


def _is_active(href: str, pathname: str) -> bool:
    if href == "/":
        return pathname == "/"
    return pathname.startswith(href)


def nav_tabs(pathname: str, is_admin: bool) -> list[NavTab]:
    """The bottom navigation tabs, marking the one for ``pathname`` active.

    The admin tab is shown only to admins.
    """
    entries = [*_TABS, _ADMIN_TAB] if is_admin else list(_TABS)
    return [
        NavTab(href=href, label=label, icon=icon, active=_is_active(href, pathname))
        for href, label, icon in entries
    ]


def resolve_page(path: str, is_authed: bool) -> Page:
    """The page shown for ``path``; signed-out visitors of gated pages get login."""
    bare = path.split("?", 1)[0].split("#", 1)[0].strip("/")
    if bare in _PUBLIC_PAGES:
        return _PUBLIC_PAGES[bare]
    if bare in _GATED_PAGES:
        return _GATED_PAGES[bare] if is_authed else Page.LOGIN
    return Page.NOT_FOUND


def avatar_badge(user: AuthUser | None) -> tuple[str, str] | None:
    """What the header shows for a user.

    ``("image", url)`` when they have an avatar, ``("initials", text)``
    otherwise, and None when nobody is signed in.
    """
    if user is None:
        return None
    if user.avatar_url is not None:
        return ("image", user.avatar_url)
    return ("initials", user.initials())