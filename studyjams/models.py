"""Record types passed between the pipeline stages.

Every stage has its own explicit record so missing markup shows up as a
default value on a known field instead of an absent key:

    RawProfileRecord  (extractor)  ->  NormalizedProfile  (normalizer)
    NormalizedProfile + ScoringRule + AllowList  ->  ScoreResult  (scoring)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import const


class ItemKind(str, enum.Enum):
    BADGE = "badge"
    GAME = "game"


class ProfileStatus(str, enum.Enum):
    VALID = "valid"
    EMPTY = "empty"
    PRIVATE = "private"


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize a UTC datetime the way the front end expects (``...000Z``)."""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# ROSTER
# =============================================================================


@dataclass(frozen=True)
class ParticipantRecord:
    id: str
    display_name: str
    profile_identifier: str
    profile_url: str
    enrollment_date: Optional[str] = None
    batch_label: str = ""
    status: str = "enrolled"
    email: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "profileId": self.profile_identifier,
            "profileUrl": self.profile_url,
            "enrollmentDate": self.enrollment_date,
            "batch": self.batch_label,
            "status": self.status,
        }


# =============================================================================
# EXTRACTION STAGE
# =============================================================================


@dataclass
class RawUserInfo:
    name: str = ""
    location: str = ""
    join_date: str = ""


@dataclass
class RawCompletionItem:
    kind: ItemKind
    title: str
    description_text: str = ""
    completion_marker_text: str = ""
    earned_or_completed_text: str = ""
    image_url: str = ""
    item_url: str = ""

    @property
    def is_completed(self) -> bool:
        return "earned" in self.completion_marker_text.lower()


@dataclass
class ProfileStats:
    total_badges: int = 0
    total_games: int = 0
    completed_badges: int = 0
    completed_games: int = 0


@dataclass
class RawProfileRecord:
    user_info: RawUserInfo = field(default_factory=RawUserInfo)
    badges: List[RawCompletionItem] = field(default_factory=list)
    games: List[RawCompletionItem] = field(default_factory=list)
    stats: ProfileStats = field(default_factory=ProfileStats)
    status: ProfileStatus = ProfileStatus.VALID
    profile_url: str = ""
    fetched_at: Optional[datetime] = None


# =============================================================================
# NORMALIZATION STAGE
# =============================================================================


@dataclass(frozen=True)
class NormalizedCompletionItem:
    kind: ItemKind
    original_title: str
    normalized_title: str
    description: str = ""
    category: str = const.CATEGORY_GENERAL
    difficulty: str = const.DIFFICULTY_INTERMEDIATE
    is_completed: bool = False
    completion_date: Optional[datetime] = None
    tags: frozenset = frozenset()
    source_url: str = ""
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "originalTitle": self.original_title,
            "normalizedTitle": self.normalized_title,
            "description": self.description,
            "category": self.category,
            "difficulty": self.difficulty,
            "isCompleted": self.is_completed,
            "completionDate": isoformat(self.completion_date),
            "tags": sorted(self.tags),
            "sourceUrl": self.source_url,
            "imageUrl": self.image_url,
        }

    def to_detail_dict(self) -> Dict[str, Any]:
        """Slim record kept on score results for date-range filtering."""
        if self.kind is ItemKind.GAME:
            date_key, url_key = "completedDate", "gameUrl"
        else:
            date_key, url_key = "earnedDate", "badgeUrl"
        return {
            "originalTitle": self.original_title,
            "normalizedTitle": self.normalized_title,
            "isCompleted": self.is_completed,
            date_key: isoformat(self.completion_date),
            url_key: self.source_url,
        }


@dataclass(frozen=True)
class NormalizedUserInfo:
    name: str = "Unknown User"
    location: str = ""
    join_date: Optional[datetime] = None
    display_name: str = ""


@dataclass
class NormalizedProfile:
    user_info: NormalizedUserInfo = field(default_factory=NormalizedUserInfo)
    badges: List[NormalizedCompletionItem] = field(default_factory=list)
    games: List[NormalizedCompletionItem] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)
    derived: Dict[str, Any] = field(default_factory=dict)
    source_url: str = ""


# =============================================================================
# ALLOW-LIST
# =============================================================================


@dataclass(frozen=True)
class AllowListEntry:
    canonical_name: str
    alternate_names: Tuple[str, ...] = ()
    template_id: Optional[str] = None
    game_id: Optional[str] = None
    kind: Optional[ItemKind] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AllowListEntry":
        kind = data.get("type") or data.get("kind")
        game_id = data.get("gameId")
        if kind in (ItemKind.GAME.value, ItemKind.BADGE.value):
            kind = ItemKind(kind)
        elif game_id:
            kind = ItemKind.GAME
        else:
            kind = None
        return cls(
            canonical_name=str(data.get("name") or data.get("canonicalName") or ""),
            alternate_names=tuple(str(n) for n in data.get("alternateNames") or ()),
            template_id=_optional_str(data.get("templateId")),
            game_id=_optional_str(game_id),
            kind=kind,
        )


@dataclass(frozen=True)
class AllowList:
    entries: Tuple[AllowListEntry, ...] = ()
    badge_count: int = 0
    game_count: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AllowList":
        entries = tuple(
            AllowListEntry.from_dict(item)
            for item in data.get("allowedSkillBadges") or ()
            if isinstance(item, Mapping)
        )
        metadata = data.get("metadata") or {}
        badge_count = metadata.get("badgeCount")
        game_count = metadata.get("gameCount")
        if badge_count is None or game_count is None:
            games = sum(1 for e in entries if e.kind is ItemKind.GAME)
            if game_count is None:
                game_count = games
            if badge_count is None:
                badge_count = len(entries) - games
        return cls(entries=entries, badge_count=int(badge_count), game_count=int(game_count))


# =============================================================================
# SCORING RULES
# =============================================================================


@dataclass(frozen=True)
class CategoryRule:
    points: float = 0
    multiplier: float = 1.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CategoryRule":
        return cls(
            points=data.get("points") or 0,
            multiplier=data.get("multiplier") or 1.0,
        )


@dataclass(frozen=True)
class ScoringLimits:
    max_badge_points: float = 500
    max_game_points: float = 200
    max_bonus_points: float = 1000
    # Optional caps on the summed points per kind; None leaves them uncapped
    max_badge_total: Optional[float] = None
    max_game_total: Optional[float] = None

    def item_cap(self, kind: ItemKind) -> float:
        return self.max_game_points if kind is ItemKind.GAME else self.max_badge_points

    def total_cap(self, kind: ItemKind) -> Optional[float]:
        return self.max_game_total if kind is ItemKind.GAME else self.max_badge_total


@dataclass(frozen=True)
class ScoringRule:
    """Immutable snapshot of the scoring rubric."""

    badges: Mapping[str, CategoryRule]
    games: Mapping[str, CategoryRule]
    difficulty: Mapping[str, float]
    specific_items: Mapping[ItemKind, Mapping[str, CategoryRule]]
    streak_tiers: Tuple[Tuple[int, float], ...]
    category_bonus: float = 0
    recent_completion_bonus: float = 0
    limits: ScoringLimits = ScoringLimits()
    version: str = "1.0"
    source: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def categories(self, kind: ItemKind) -> Mapping[str, CategoryRule]:
        return self.games if kind is ItemKind.GAME else self.badges

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoringRule":
        bonuses = data.get("bonuses") or {}
        streak = bonuses.get("completion_streak") or {}
        tiers = []
        for key, amount in streak.items():
            threshold = str(key).split("_", 1)[0]
            if threshold.isdigit():
                tiers.append((int(threshold), amount or 0))
        tiers.sort(reverse=True)

        specific = data.get("specificItems") or {}
        limits = data.get("limits") or {}
        defaults = ScoringLimits()
        return cls(
            badges=_category_table(data.get("badges")),
            games=_category_table(data.get("games")),
            difficulty=MappingProxyType(dict(data.get("difficulty") or {})),
            specific_items=MappingProxyType(
                {
                    ItemKind.BADGE: _category_table(specific.get("badges")),
                    ItemKind.GAME: _category_table(specific.get("games")),
                }
            ),
            streak_tiers=tuple(tiers),
            category_bonus=(bonuses.get("category_completion") or {}).get("category_bonus") or 0,
            recent_completion_bonus=(bonuses.get("time_bonus") or {}).get("recent_completion") or 0,
            limits=ScoringLimits(
                max_badge_points=limits.get("max_badge_points") or defaults.max_badge_points,
                max_game_points=limits.get("max_game_points") or defaults.max_game_points,
                max_bonus_points=limits.get("max_bonus_points") or defaults.max_bonus_points,
                max_badge_total=limits.get("max_badge_total"),
                max_game_total=limits.get("max_game_total"),
            ),
            version=str(data.get("version") or "1.0"),
            source=MappingProxyType(dict(data)),
        )


def _category_table(data: Optional[Mapping[str, Any]]) -> Mapping[str, CategoryRule]:
    table = {
        name: CategoryRule.from_dict(value)
        for name, value in (data or {}).items()
        if isinstance(value, Mapping)
    }
    return MappingProxyType(table)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


# =============================================================================
# SCORE RESULT
# =============================================================================


@dataclass(frozen=True)
class ScoredItem:
    item: NormalizedCompletionItem
    points: int
    base_points: float
    multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.item.original_title,
            "normalizedTitle": self.item.normalized_title,
            "category": self.item.category,
            "difficulty": self.item.difficulty,
            "points": self.points,
            "basePoints": self.base_points,
            "multiplier": self.multiplier,
        }


@dataclass
class KindBreakdown:
    points: int = 0
    count: int = 0
    items: List[ScoredItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": self.points,
            "count": self.count,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class BonusItem:
    type: str
    description: str
    points: int

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "description": self.description, "points": self.points}


@dataclass
class BonusBreakdown:
    points: int = 0
    items: List[BonusItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"points": self.points, "items": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class FilteredItem:
    kind: ItemKind
    title: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "reason": self.reason}


@dataclass(frozen=True)
class ProgressEntry:
    completed: int = 0
    total: int = 0
    percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"completed": self.completed, "total": self.total, "percentage": self.percentage}


@dataclass(frozen=True)
class Progress:
    badges: ProgressEntry = ProgressEntry()
    games: ProgressEntry = ProgressEntry()
    overall: ProgressEntry = ProgressEntry()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "badges": self.badges.to_dict(),
            "games": self.games.to_dict(),
            "overall": self.overall.to_dict(),
        }


@dataclass
class ScoreResult:
    total_points: int = 0
    badges: KindBreakdown = field(default_factory=KindBreakdown)
    games: KindBreakdown = field(default_factory=KindBreakdown)
    bonuses: BonusBreakdown = field(default_factory=BonusBreakdown)
    completed_badges: List[NormalizedCompletionItem] = field(default_factory=list)
    completed_games: List[NormalizedCompletionItem] = field(default_factory=list)
    progress: Progress = field(default_factory=Progress)
    filtered_out_items: List[FilteredItem] = field(default_factory=list)
    detailed_badges: List[NormalizedCompletionItem] = field(default_factory=list)
    detailed_games: List[NormalizedCompletionItem] = field(default_factory=list)
    allow_list_size: int = 0
    config_version: str = "1.0"
    calculated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        filtered_badges = [f.to_dict() for f in self.filtered_out_items if f.kind is ItemKind.BADGE]
        filtered_games = [f.to_dict() for f in self.filtered_out_items if f.kind is ItemKind.GAME]
        return {
            "totalPoints": self.total_points,
            "breakdown": {
                "badges": self.badges.to_dict(),
                "games": self.games.to_dict(),
                "bonuses": self.bonuses.to_dict(),
            },
            "completedBadges": [item.to_dict() for item in self.completed_badges],
            "completedGames": [item.to_dict() for item in self.completed_games],
            "progress": self.progress.to_dict(),
            "filtering": {
                "allowedBadgesTotal": self.allow_list_size,
                "filteredBadges": filtered_badges,
                "filteredGames": filtered_games,
            },
            "detailedBadges": [item.to_detail_dict() for item in self.detailed_badges],
            "detailedGames": [item.to_detail_dict() for item in self.detailed_games],
            "metadata": {
                "calculatedAt": isoformat(self.calculated_at),
                "configVersion": self.config_version,
                "filteringEnabled": self.allow_list_size > 0,
            },
        }
