"""Selection state for searchable dropdowns, video file picks and confirmations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

DEFAULT_PLACEHOLDER = "Select..."

_PATH_SEPARATORS = re.compile(r"[/\\]")


@dataclass(frozen=True)
class SelectOption:
    """One choice offered by a dropdown."""

    value: str
    label: str


def filter_options(options: Iterable[SelectOption], query: str) -> list[SelectOption]:
    """Options whose label contains ``query``, ignoring case; all when empty."""
    needle = query.lower()
    return [
        option
        for option in options
        if not needle or needle in option.label.lower()
    ]


def multi_select_label(
    selected: Sequence[str], placeholder: str = DEFAULT_PLACEHOLDER
) -> str:
    """Trigger text for a multi-select: the placeholder or ``"N selected"``."""
    if not selected:
        return placeholder
    return f"{len(selected)} selected"


def selected_chips(
    options: Iterable[SelectOption], selected: Iterable[str]
) -> list[SelectOption]:
    """The selected options, in the order the options are listed."""
    chosen = set(selected)
    return [option for option in options if option.value in chosen]


def toggle_value(selected: Iterable[str], value: str) -> list[str]:
    """Remove ``value`` if it is selected, otherwise add it at the end."""
    current = list(selected)
    if value in current:
        return [item for item in current if item != value]
    return [*current, value]


def remove_value(selected: Iterable[str], value: str) -> list[str]:
    """The selection without ``value``."""
    return [item for item in selected if item != value]


def single_select_label(
    options: Iterable[SelectOption],
    selected: str,
    placeholder: str = DEFAULT_PLACEHOLDER,
) -> str:
    """Trigger text for a single-select.

    The placeholder when nothing is chosen, the chosen option's label when
    it is known, and the raw value otherwise.
    """
    if not selected:
        return placeholder
    return next(
        (option.label for option in options if option.value == selected),
        selected,
    )


def file_name_from_path(path: str) -> str:
    """The last component of a path using ``/`` or ``\\`` separators."""
    return _PATH_SEPARATORS.split(path)[-1]


@dataclass
class ConfirmDialog:
    """A confirmation prompt guarding a destructive action."""

    on_confirm: Callable[[], object]
    title: str = "Delete this item?"
    subtitle: str = "This cannot be undone."
    confirm_label: str = "Delete"
    visible: bool = False

    def open(self) -> None:
        """Show the dialog."""
        self.visible = True

    def cancel(self) -> None:
        """Hide the dialog without acting."""
        self.visible = False

    def confirm(self) -> None:
        """Run the guarded action, then hide the dialog."""
        self.on_confirm()
        self.visible = False