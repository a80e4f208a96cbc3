"""
Normalize an extracted profile.

Pure functions, no I/O. Items without a title are dropped; every other
missing field falls back to a default (empty string, ``general`` category,
``intermediate`` difficulty, no date).
"""
import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from dateutil import parser, tz

from . import const
from .models import (
    ItemKind,
    NormalizedCompletionItem,
    NormalizedProfile,
    NormalizedUserInfo,
    ProfileStats,
    RawCompletionItem,
    RawProfileRecord,
    RawUserInfo,
)
from .urls import absolute_url

_WHITESPACE_RE = re.compile(r"\s+")
_CLEAN_TEXT_RE = re.compile(r"[^\w\s\-.]")
_TITLE_PUNCT_RE = re.compile(r"[^\w\s\-]")
_DATE_PREFIX_RE = re.compile(r"^(?:earned|completed|finished)\s*:?\s*", re.IGNORECASE)
_TZINFOS = {
    "UTC": tz.UTC,
    "GMT": tz.UTC,
    "EST": tz.tzoffset("EST", -5 * 3600),
    "EDT": tz.tzoffset("EDT", -4 * 3600),
    "CST": tz.tzoffset("CST", -6 * 3600),
    "CDT": tz.tzoffset("CDT", -5 * 3600),
    "MST": tz.tzoffset("MST", -7 * 3600),
    "MDT": tz.tzoffset("MDT", -6 * 3600),
    "PST": tz.tzoffset("PST", -8 * 3600),
    "PDT": tz.tzoffset("PDT", -7 * 3600),
    "IST": tz.tzoffset("IST", 5 * 3600 + 1800),
}


def round_half_up(value: float) -> int:
    """Round .5 up, matching how the front end rounds percentages."""
    return int((value + 0.5) // 1)


def clean_text(text: Optional[str]) -> str:
    if not text:
        return ""
    text = _WHITESPACE_RE.sub(" ", text.strip())
    return _CLEAN_TEXT_RE.sub("", text).strip()


def normalize_title(title: Optional[str]) -> str:
    """Matching key for a title: lowercase, punctuation to spaces, single spaced."""
    if not title:
        return ""
    title = _TITLE_PUNCT_RE.sub(" ", title.lower().strip())
    return _WHITESPACE_RE.sub(" ", title).strip()


def normalize_url(url: Optional[str]) -> str:
    return absolute_url(url or "")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC view of *value*; naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(text: Optional[str]) -> Optional[datetime]:
    """Parse the loose date strings found on profile cards.

    Returns an aware UTC datetime, or None when the text is not a date.
    """
    if not text or not text.strip():
        return None
    value = _DATE_PREFIX_RE.sub("", text.strip()).strip()
    if not value:
        return None

    try:
        try:
            parsed = parser.isoparse(value)
        except (ValueError, TypeError):
            parsed = parser.parse(value, fuzzy=True, tzinfos=_TZINFOS)
        return as_utc(parsed)
    except (ValueError, OverflowError, TypeError):
        return None


def extract_display_name(full_name: str) -> str:
    if not full_name:
        return ""
    parts = full_name.split(" ")
    return parts[0] if len(parts) > 1 else full_name


def categorize_badge(normalized_title: str) -> str:
    for category, patterns in const.BADGE_CATEGORY_PATTERNS.items():
        if any(p in normalized_title for p in patterns):
            return category
    for keyword, category in const.BADGE_CATEGORY_FALLBACKS:
        if keyword in normalized_title:
            return category
    return const.CATEGORY_GENERAL


def categorize_game(normalized_title: str) -> str:
    for category, patterns in const.GAME_CATEGORY_PATTERNS.items():
        if any(p in normalized_title for p in patterns):
            return category
    return const.CATEGORY_GENERAL


def assess_difficulty(title: str, description: str = "") -> str:
    text = f"{title or ''} {description or ''}".lower()
    for difficulty, keywords in const.DIFFICULTY_KEYWORDS:
        if any(k in text for k in keywords):
            return difficulty
    return const.DIFFICULTY_INTERMEDIATE


def extract_tags(title: str, description: str = "") -> frozenset:
    # Whole words only: "go" must not tag every "google" title
    words = set(normalize_title(f"{title or ''} {description or ''}").split())
    return frozenset(t for t in const.TECH_TAGS + const.SERVICE_TAGS if t in words)


def normalize_item(item: RawCompletionItem) -> Optional[NormalizedCompletionItem]:
    if item is None or not item.title or not item.title.strip():
        return None

    normalized_title = normalize_title(item.title)
    if item.kind is ItemKind.GAME:
        category = categorize_game(normalized_title)
    else:
        category = categorize_badge(normalized_title)

    return NormalizedCompletionItem(
        kind=item.kind,
        original_title=item.title,
        normalized_title=normalized_title,
        description=clean_text(item.description_text),
        category=category,
        difficulty=assess_difficulty(item.title, item.description_text),
        is_completed=item.is_completed,
        completion_date=parse_date(item.earned_or_completed_text),
        tags=extract_tags(item.title, item.description_text),
        source_url=normalize_url(item.item_url),
        image_url=normalize_url(item.image_url),
    )


def normalize_items(items: Iterable[RawCompletionItem]) -> List[NormalizedCompletionItem]:
    """Normalize, drop invalid items, completed first then by title."""
    normalized = [n for n in (normalize_item(i) for i in items) if n is not None]
    return sorted(normalized, key=lambda n: (not n.is_completed, n.normalized_title))


def normalize_user_info(user_info: RawUserInfo) -> NormalizedUserInfo:
    return NormalizedUserInfo(
        name=clean_text(user_info.name) or "Unknown User",
        location=clean_text(user_info.location),
        join_date=parse_date(user_info.join_date),
        display_name=extract_display_name(user_info.name.strip()),
    )


def percentage(completed: int, total: int) -> int:
    if not total:
        return 0
    return round_half_up(completed / total * 100)


def profile_statistics(stats: ProfileStats) -> Dict[str, Dict[str, int]]:
    total_items = stats.total_badges + stats.total_games
    completed_items = stats.completed_badges + stats.completed_games
    return {
        "total": {"badges": stats.total_badges, "games": stats.total_games},
        "completed": {"badges": stats.completed_badges, "games": stats.completed_games},
        "completion": {
            "badgePercentage": percentage(stats.completed_badges, stats.total_badges),
            "gamePercentage": percentage(stats.completed_games, stats.total_games),
            "overallPercentage": percentage(completed_items, total_items),
        },
    }


def _group(items, attr) -> Dict[str, List[NormalizedCompletionItem]]:
    groups = defaultdict(list)
    for item in items:
        groups[getattr(item, attr)].append(item)
    return dict(groups)


def recent_completions(items, now: Optional[datetime] = None, days: int = const.RECENT_WINDOW_DAYS):
    cutoff = as_utc(now or datetime.now(timezone.utc)) - timedelta(days=days)
    recent = [i for i in items if i.completion_date is not None and as_utc(i.completion_date) >= cutoff]
    return recent[: const.RECENT_LIST_LIMIT]


def derived_statistics(badges, games, now: Optional[datetime] = None):
    completed_badges = [b for b in badges if b.is_completed]
    completed_games = [g for g in games if g.is_completed]
    tags = set()
    for item in list(badges) + list(games):
        tags.update(item.tags)
    return {
        "categories": {"badges": _group(badges, "category"), "games": _group(games, "category")},
        "difficulty": {
            "badges": _group(completed_badges, "difficulty"),
            "games": _group(completed_games, "difficulty"),
        },
        "recent": {
            "badges": recent_completions(completed_badges, now),
            "games": recent_completions(completed_games, now),
        },
        "tags": sorted(tags),
    }


def normalize(raw: RawProfileRecord, now: Optional[datetime] = None) -> NormalizedProfile:
    """Turn a ``RawProfileRecord`` into a ``NormalizedProfile``. Never raises."""
    badges = normalize_items(raw.badges)
    games = normalize_items(raw.games)
    return NormalizedProfile(
        user_info=normalize_user_info(raw.user_info or RawUserInfo()),
        badges=badges,
        games=games,
        statistics=profile_statistics(raw.stats or ProfileStats()),
        derived=derived_statistics(badges, games, now),
        source_url=raw.profile_url or "",
    )
