"""Read-only view of the enrolled participant roster."""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import read_json
from .errors import ConfigError
from .models import ParticipantRecord
from .urls import build_profile_url, extract_profile_id, normalize_profile_url

logger = logging.getLogger(__name__)


def participant_from_entry(entry: Any, index: int = 0) -> Optional[ParticipantRecord]:
    """Build a record from a structured roster entry or a legacy URL string."""
    if isinstance(entry, str):
        return ParticipantRecord(
            id=f"legacy-{index + 1:03d}",
            display_name="Unknown",
            profile_identifier=extract_profile_id(entry) or "",
            profile_url=entry,
        )
    if not isinstance(entry, Mapping):
        return None

    profile_id = entry.get("profileId") or extract_profile_id(entry.get("profileUrl")) or ""
    profile_url = entry.get("profileUrl") or (build_profile_url(profile_id) if profile_id else "")
    if not profile_id and not profile_url:
        return None
    return ParticipantRecord(
        id=str(entry.get("id") or f"participant-{index + 1:03d}"),
        display_name=entry.get("name") or entry.get("displayName") or "Unknown",
        profile_identifier=profile_id,
        profile_url=profile_url,
        enrollment_date=entry.get("enrollmentDate"),
        batch_label=entry.get("batch") or "",
        status=entry.get("status") or "enrolled",
        email=entry.get("email") or "",
    )


class RosterStore:
    def __init__(self, participants: Iterable[ParticipantRecord] = ()):
        self._participants: List[ParticipantRecord] = [
            p for p in participants if p.status == "enrolled"
        ]
        self._by_id: Dict[str, ParticipantRecord] = {}
        for p in self._participants:
            if p.profile_identifier:
                self._by_id.setdefault(p.profile_identifier, p)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RosterStore":
        entries = data.get("participants") or []
        participants = []
        for index, entry in enumerate(entries):
            record = participant_from_entry(entry, index)
            if record is None:
                logger.warning("Skipping unreadable roster entry #%d", index + 1)
                continue
            participants.append(record)
        return cls(participants)

    @classmethod
    def from_file(cls, path: Path) -> "RosterStore":
        data = read_json(path)
        if data is None:
            logger.warning("Enrollment list %s not found, using empty roster", path)
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"Enrollment list {path} must be a JSON object")
        store = cls.from_dict(data)
        logger.info("Loaded %d enrolled participants from %s", len(store), path)
        return store

    def __len__(self) -> int:
        return len(self._participants)

    def list_participants(self) -> List[ParticipantRecord]:
        return list(self._participants)

    def get_participant_by_profile_identifier(self, profile_id: str) -> Optional[ParticipantRecord]:
        return self._by_id.get(profile_id)

    def get_participant_by_url(self, profile_url: str) -> Optional[ParticipantRecord]:
        normalized = normalize_profile_url(profile_url)
        if not normalized:
            return None
        profile_id = extract_profile_id(normalized)

        participant = self._by_id.get(profile_id)
        if participant is not None:
            return participant
        for p in self._participants:
            if normalize_profile_url(p.profile_url) == normalized:
                return p
            if p.profile_url in (profile_url, normalized):
                return p
        return None

    def is_enrolled(self, profile_url: str) -> bool:
        enrolled = self.get_participant_by_url(profile_url) is not None
        logger.debug(
            "Enrollment check for %s: %s",
            extract_profile_id(profile_url),
            "ENROLLED" if enrolled else "NOT ENROLLED",
        )
        return enrolled
