"""Exercise categories and demo-video URL handling."""

from __future__ import annotations

from dataclasses import dataclass

_YOUTUBE_EMBED = "https://www.youtube.com/embed/{}?playsinline=1&enablejsapi=1"
_VIMEO_EMBED = "https://player.vimeo.com/video/{}"


@dataclass(frozen=True)
class Category:
    value: str
    label: str
    badge: str
    css_class: str


CATEGORIES: tuple[Category, ...] = (
    Category("conditioning", "Conditioning", "CON", "badge--conditioning"),
    Category("gymnastics", "Gymnastics", "GYM", "badge--gymnastics"),
    Category("weightlifting", "Weightlifting", "WL", "badge--weightlifting"),
    Category("powerlifting", "Powerlifting", "PWR", "badge--powerlifting"),
    Category("cardio", "Cardio", "CRD", "badge--cardio"),
    Category("bodybuilding", "Bodybuilding", "BB", "badge--bodybuilding"),
    Category("strongman", "Strongman", "STR", "badge--strongman"),
    Category("plyometrics", "Plyometrics", "PLY", "badge--plyometrics"),
    Category("calisthenics", "Calisthenics", "CAL", "badge--calisthenics"),
    Category("mobility", "Mobility", "MOB", "badge--mobility"),
    Category("yoga", "Yoga", "YGA", "badge--yoga"),
    Category("meditation", "Meditation", "MED", "badge--meditation"),
    Category("breathing", "Breathing", "BRE", "badge--breathing"),
    Category("chanting", "Chanting", "CHN", "badge--chanting"),
    Category("sports", "Sports", "SPT", "badge--sports"),
    Category("warmup", "Warm Up", "WRM", "badge--warmup"),
    Category("cooldown", "Cool Down", "CLD", "badge--cooldown"),
)

_BY_VALUE = {category.value: category for category in CATEGORIES}


def to_embed_url(url: str) -> str | None:
    """Embed URL for a YouTube or Vimeo link; None for any other URL."""
    if "youtube.com/watch" in url:
        pos = url.find("v=")
        if pos != -1:
            return _YOUTUBE_EMBED.format(url[pos + 2:].split("&")[0])
    if "youtu.be/" in url:
        pos = url.find("youtu.be/")
        return _YOUTUBE_EMBED.format(url[pos + len("youtu.be/"):].split("?")[0])
    if "vimeo.com/" in url:
        video_id = url[url.rfind("/") + 1:].split("?")[0]
        if all(c in "0123456789" for c in video_id):
            return _VIMEO_EMBED.format(video_id)
    return None


def with_autoplay(embed_url: str) -> str:
    """Append the autoplay flag to an embed URL."""
    separator = "&" if "?" in embed_url else "?"
    return f"{embed_url}{separator}autoplay=1"


def category_badge(category: str) -> str:
    """Short badge text for a category; ``GEN`` when unknown."""
    found = _BY_VALUE.get(category)
    return found.badge if found else "GEN"


def category_class(category: str) -> str:
    """CSS class for a category's badge; empty when unknown."""
    found = _BY_VALUE.get(category)
    return found.css_class if found else ""


def category_select_options() -> list[tuple[str, str]]:
    """(value, label) pairs for every category, in display order."""
    return [(category.value, category.label) for category in CATEGORIES]