"""
End-to-end profile scoring: enrollment gate -> fetch -> extract ->
normalize -> score.

``ProfileScorer`` holds the read-only roster, rubric and allow-list for the
life of the process. Each call fetches its own page and computes a fresh
result; calls share no mutable state, so concurrent use is safe.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .config import Settings, load_allow_list, load_scoring_rules
from .errors import InvalidURL, NotEnrolled, PrivateProfile, StudyJamsError
from .fetcher import ProfileFetcher
from .models import (
    AllowList,
    NormalizedProfile,
    ParticipantRecord,
    ProfileStatus,
    ScoreResult,
    ScoringRule,
)
from .normalizer import normalize
from .roster import RosterStore
from .scoring import ScoringEngine
from .urls import extract_profile_id, normalize_profile_url

logger = logging.getLogger(__name__)

STATUS_ACCESSIBLE = "accessible"
STATUS_PRIVATE = "private"
STATUS_ERROR = "error"


@dataclass
class PointsReport:
    participant: ParticipantRecord
    profile_url: str
    profile: NormalizedProfile
    result: ScoreResult

    @property
    def user_name(self) -> str:
        name = self.profile.user_info.name
        if name and name != "Unknown User":
            return name
        return self.participant.display_name or "Unknown User"

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "success": True,
            "enrolled": True,
            "participant": {
                "name": self.participant.display_name or "Unknown",
                "batch": self.participant.batch_label or "Unknown",
                "enrollmentDate": self.participant.enrollment_date,
            },
            "profileUrl": self.profile_url,
            "userName": self.user_name,
        }
        payload.update(self.result.to_dict())
        recent = self.profile.derived.get("recent") or {}
        payload["profileStatistics"] = {
            **self.profile.statistics,
            "recentCompletions": {
                kind: [item.to_detail_dict() for item in items] for kind, items in recent.items()
            },
            "tags": list(self.profile.derived.get("tags") or ()),
        }
        return payload


@dataclass
class AccessibilityCheck:
    profile_url: str
    status: str
    message: str

    @property
    def accessible(self) -> bool:
        return self.status == STATUS_ACCESSIBLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "status": self.status,
            "accessible": self.accessible,
            "message": self.message,
            "profileUrl": self.profile_url,
        }


class ProfileScorer:
    def __init__(
        self,
        roster: RosterStore,
        rules: ScoringRule,
        allow_list: Optional[AllowList] = None,
        fetcher: Optional[ProfileFetcher] = None,
    ):
        self.roster = roster
        self.rules = rules
        self.allow_list = allow_list or AllowList()
        self.fetcher = fetcher or ProfileFetcher()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProfileScorer":
        return cls(
            roster=RosterStore.from_file(settings.roster_path),
            rules=load_scoring_rules(settings.scoring_config_path),
            allow_list=load_allow_list(settings.allow_list_path),
            fetcher=ProfileFetcher(timeout=settings.timeout),
        )

    def calculate(self, profile_url: str, now: Optional[datetime] = None) -> PointsReport:
        """Score one profile.

        Raises ``InvalidURL``, ``NotEnrolled``, ``PrivateProfile`` or one of
        the network errors; never returns a partial report.
        """
        normalized = normalize_profile_url(profile_url)
        if not normalized:
            raise InvalidURL(f"Invalid profile URL format: {profile_url!r}")

        participant = self.roster.get_participant_by_url(normalized)
        if participant is None:
            raise NotEnrolled(
                f"Profile {extract_profile_id(normalized)} is not in the enrolled participants list"
            )

        raw = self.fetcher.fetch_profile(normalized)
        profile = normalize(raw, now=now)
        result = ScoringEngine(self.rules, self.allow_list, now=now).score(profile)
        logger.info(
            "Scored %s: %d points (%d badges, %d games)",
            participant.profile_identifier,
            result.total_points,
            result.badges.count,
            result.games.count,
        )
        return PointsReport(
            participant=participant,
            profile_url=normalized,
            profile=profile,
            result=result,
        )

    def check_profile(self, profile_url: str) -> AccessibilityCheck:
        """Classify a profile as accessible, private or error. No enrollment gate."""
        normalized = normalize_profile_url(profile_url)
        if not normalized:
            raise InvalidURL(f"Invalid profile URL format: {profile_url!r}")

        try:
            raw = self.fetcher.fetch_profile(normalized)
        except PrivateProfile:
            return AccessibilityCheck(profile_url, STATUS_PRIVATE, "Profile is set to private")
        except StudyJamsError as e:
            logger.warning("Profile check failed for %s: %s", normalized, e)
            return AccessibilityCheck(profile_url, STATUS_ERROR, str(e) or "Unable to access profile")

        if raw.status is ProfileStatus.EMPTY:
            return AccessibilityCheck(
                profile_url, STATUS_ERROR, "Profile appears to be empty or invalid"
            )
        return AccessibilityCheck(profile_url, STATUS_ACCESSIBLE, "Profile is publicly accessible")
