"""Score, ranking and streak rules for logged workouts."""

from __future__ import annotations

import math
import re
import struct
from datetime import date, timedelta
from typing import Iterable

from gritwit.models import SectionScoreInput

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1
_DATE_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _saturating_i32(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= _I32_MAX:
        return _I32_MAX
    if value <= _I32_MIN:
        return _I32_MIN
    return int(value)


def compute_score_value(
    section_type: str,
    finish_time_seconds: int | None = None,
    rounds_completed: int | None = None,
    extra_reps: int | None = None,
    weight_kg: float | None = None,
) -> int | None:
    """Comparable score for a section.

    ``fortime`` scores the finish time (lower is better); ``amrap`` and
    ``emom`` score rounds * 1000 + extra reps; ``strength`` scores the
    weight in hundredths of a kilogram. Other types have no score.
    """
    if section_type == "fortime":
        return finish_time_seconds
    if section_type in ("amrap", "emom"):
        return (rounds_completed or 0) * 1000 + (extra_reps or 0)
    if section_type == "strength":
        if weight_kg is None:
            return None
        return _saturating_i32(_f32(_f32(weight_kg) * 100.0))
    return None


def overall_rx(sections: Iterable[SectionScoreInput]) -> bool:
    """True when every section that was not skipped was done as prescribed."""
    return all(section.is_rx for section in sections if not section.skipped)


def score_order(section_type: str) -> str:
    """SQL sort direction for scores: lower wins for ``fortime`` only."""
    return "ASC" if section_type == "fortime" else "DESC"


def streak_days(dates: Iterable[date], today: date) -> int:
    """Count consecutive workout days ending today or yesterday."""
    ordered = sorted({d for d in dates if d <= today}, reverse=True)
    one_day = timedelta(days=1)
    yesterday = today - one_day
    streak = 0
    expected = today
    for day in ordered:
        if streak == 0 and day == yesterday:
            expected = yesterday
        if day == expected:
            streak += 1
            expected -= one_day
        elif day < expected:
            break
    return streak


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` date, raising ValueError when it is not one."""
    match = _DATE_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"Invalid date: {value!r} is not in YYYY-MM-DD form")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {exc}") from None