"""
Score a normalized profile against a rubric and an allow-list.

``ScoringEngine`` is deterministic for a given ``now``: rules and allow-list
are passed in and never mutated, and nothing is cached between calls.

Per item:
    specific override  ->  round(points * multiplier)
    otherwise          ->  round(base * category multiplier * difficulty multiplier)
    then clamped to [0, per-item cap for the kind]

Bonuses (summed, then clamped to ``max_bonus_points``):
    streak    highest qualifying tier on allowed completions (5 / 10 / 20)
    category  distinct allowed badge categories * 10% of ``category_bonus``
    time      ``recent_completion`` per allowed item completed in the last 30 days
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from . import const
from .models import (
    AllowList,
    AllowListEntry,
    BonusBreakdown,
    BonusItem,
    CategoryRule,
    FilteredItem,
    ItemKind,
    KindBreakdown,
    NormalizedCompletionItem,
    NormalizedProfile,
    Progress,
    ProgressEntry,
    ScoredItem,
    ScoreResult,
    ScoringRule,
)
from .normalizer import as_utc, percentage, round_half_up
from .urls import path_segments

logger = logging.getLogger(__name__)

FILTERED_REASON = "Not in allowed skill badges list"
TEMPLATE_SEGMENT = "course_templates"
GAME_SEGMENT = "games"


def match_key(title: Optional[str]) -> str:
    """Alphanumeric lowercase key used to compare titles with allow-list names."""
    return "".join(ch for ch in (title or "").lower() if ch.isalnum())


def is_allowed(item: NormalizedCompletionItem, allow_list: AllowList) -> bool:
    """An empty allow-list allows everything."""
    if not allow_list.entries:
        return True
    key = match_key(item.normalized_title or item.original_title)
    segments = path_segments(item.source_url)
    return any(_entry_matches(entry, key, segments) for entry in allow_list.entries)


def _entry_matches(entry: AllowListEntry, key: str, segments: List[str]) -> bool:
    if key and key == match_key(entry.canonical_name):
        return True
    if key and any(key == match_key(name) for name in entry.alternate_names):
        return True
    if entry.template_id and _follows(segments, TEMPLATE_SEGMENT, entry.template_id):
        return True
    if entry.game_id and _follows(segments, GAME_SEGMENT, entry.game_id):
        return True
    return False


def _follows(segments: List[str], marker: str, identifier: str) -> bool:
    """True when *identifier* is the path segment right after *marker*."""
    return any(
        segments[i] == marker and segments[i + 1] == identifier for i in range(len(segments) - 1)
    )


class ScoringEngine:
    def __init__(
        self,
        rules: ScoringRule,
        allow_list: Optional[AllowList] = None,
        now: Optional[datetime] = None,
    ):
        self.rules = rules
        self.allow_list = allow_list or AllowList()
        self.now = now

    # ------------------------------------------------------------------
    # per item
    # ------------------------------------------------------------------

    def category_rule(self, item: NormalizedCompletionItem) -> CategoryRule:
        table = self.rules.categories(item.kind)
        return table.get(item.category) or table.get(const.CATEGORY_GENERAL) or CategoryRule()

    def difficulty_multiplier(self, item: NormalizedCompletionItem) -> float:
        return self.rules.difficulty.get(item.difficulty) or 1.0

    def override_rule(self, item: NormalizedCompletionItem) -> Optional[CategoryRule]:
        overrides = self.rules.specific_items.get(item.kind) or {}
        return overrides.get(item.original_title) or overrides.get(item.normalized_title)

    def item_points(self, item: NormalizedCompletionItem) -> int:
        override = self.override_rule(item)
        if override is not None:
            points = round_half_up(override.points * override.multiplier)
        else:
            rule = self.category_rule(item)
            points = round_half_up(rule.points * rule.multiplier * self.difficulty_multiplier(item))
        cap = self.rules.limits.item_cap(item.kind)
        return int(max(0, min(points, cap)))

    def _score_kind(
        self, items: List[NormalizedCompletionItem], kind: ItemKind
    ) -> Tuple[KindBreakdown, List[NormalizedCompletionItem], List[FilteredItem]]:
        breakdown = KindBreakdown()
        allowed: List[NormalizedCompletionItem] = []
        filtered: List[FilteredItem] = []

        for item in items:
            if not item.is_completed:
                continue
            if not is_allowed(item, self.allow_list):
                filtered.append(FilteredItem(kind=kind, title=item.original_title, reason=FILTERED_REASON))
                continue
            rule = self.category_rule(item)
            breakdown.items.append(
                ScoredItem(
                    item=item,
                    points=self.item_points(item),
                    base_points=rule.points,
                    multiplier=rule.multiplier * self.difficulty_multiplier(item),
                )
            )
            allowed.append(item)

        breakdown.count = len(allowed)
        breakdown.points = sum(s.points for s in breakdown.items)
        total_cap = self.rules.limits.total_cap(kind)
        if total_cap is not None:
            breakdown.points = int(min(breakdown.points, total_cap))
        return breakdown, allowed, filtered

    # ------------------------------------------------------------------
    # bonuses
    # ------------------------------------------------------------------

    def streak_bonus(self, completions: int) -> int:
        for threshold, amount in self.rules.streak_tiers:
            if completions >= threshold:
                return round_half_up(amount)
        return 0

    def category_bonus(self, badges: List[NormalizedCompletionItem]) -> int:
        # Partial credit per distinct category, not "every item in a category done"
        categories = {b.category for b in badges}
        return round_half_up(len(categories) * (self.rules.category_bonus * const.CATEGORY_BONUS_SHARE))

    def time_bonus(self, items: List[NormalizedCompletionItem], now: datetime) -> int:
        per_item = self.rules.recent_completion_bonus
        if not per_item:
            return 0
        cutoff = as_utc(now) - timedelta(days=const.RECENT_WINDOW_DAYS)
        recent = sum(1 for i in items if i.completion_date is not None and as_utc(i.completion_date) >= cutoff)
        return round_half_up(recent * per_item)

    def _bonuses(self, badges, games, now: datetime) -> BonusBreakdown:
        result = BonusBreakdown()
        candidates = (
            ("completion_streak", "Completion streak bonus", self.streak_bonus(len(badges) + len(games))),
            ("category_completion", "Category completion bonus", self.category_bonus(badges)),
            ("time_bonus", "Recent completion bonus", self.time_bonus(badges + games, now)),
        )
        for bonus_type, description, points in candidates:
            if points > 0:
                result.items.append(BonusItem(type=bonus_type, description=description, points=points))
        total = sum(b.points for b in result.items)
        result.points = int(max(0, min(total, self.rules.limits.max_bonus_points)))
        return result

    # ------------------------------------------------------------------
    # progress
    # ------------------------------------------------------------------

    def progress(self, completed_badges: int, completed_games: int) -> Progress:
        total_badges = self.allow_list.badge_count
        total_games = self.allow_list.game_count
        completed = completed_badges + completed_games
        total = total_badges + total_games
        return Progress(
            badges=ProgressEntry(completed_badges, total_badges, percentage(completed_badges, total_badges)),
            games=ProgressEntry(completed_games, total_games, percentage(completed_games, total_games)),
            overall=ProgressEntry(completed, total, percentage(completed, total)),
        )

    # ------------------------------------------------------------------

    def score(self, profile: NormalizedProfile) -> ScoreResult:
        now = as_utc(self.now or datetime.now(timezone.utc))

        badges, allowed_badges, filtered_badges = self._score_kind(profile.badges, ItemKind.BADGE)
        games, allowed_games, filtered_games = self._score_kind(profile.games, ItemKind.GAME)
        bonuses = self._bonuses(allowed_badges, allowed_games, now)

        result = ScoreResult(
            total_points=badges.points + games.points + bonuses.points,
            badges=badges,
            games=games,
            bonuses=bonuses,
            completed_badges=allowed_badges,
            completed_games=allowed_games,
            progress=self.progress(badges.count, games.count),
            filtered_out_items=filtered_badges + filtered_games,
            detailed_badges=list(profile.badges),
            detailed_games=list(profile.games),
            allow_list_size=len(self.allow_list),
            config_version=self.rules.version,
            calculated_at=now,
        )
        if result.filtered_out_items:
            logger.debug("Filtered %d items not on the allow-list", len(result.filtered_out_items))
        return result


def score(
    profile: NormalizedProfile,
    rules: ScoringRule,
    allow_list: Optional[AllowList] = None,
    now: Optional[datetime] = None,
) -> ScoreResult:
    return ScoringEngine(rules, allow_list, now=now).score(profile)
