"""Cloud Skills Boost profile points calculator for GDG Cloud Study Jams."""

from .errors import (
    EmptyResponse,
    HTTPError,
    InvalidURL,
    NetworkError,
    NetworkTimeout,
    NotEnrolled,
    PrivateProfile,
    StudyJamsError,
)
from .extractor import extract
from .fetcher import ProfileFetcher
from .normalizer import normalize, normalize_title
from .pipeline import ProfileScorer
from .roster import RosterStore
from .scoring import ScoringEngine, score
from .urls import normalize_profile_url

__version__ = "1.0.0"

__all__ = [
    "EmptyResponse",
    "HTTPError",
    "InvalidURL",
    "NetworkError",
    "NetworkTimeout",
    "NotEnrolled",
    "PrivateProfile",
    "ProfileFetcher",
    "ProfileScorer",
    "RosterStore",
    "ScoringEngine",
    "StudyJamsError",
    "extract",
    "normalize",
    "normalize_profile_url",
    "normalize_title",
    "score",
]
