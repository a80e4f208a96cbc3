"""
Fetch Cloud Skills Boost public profile pages.

The fetcher is stateless apart from its ``requests.Session``: one GET per
call, redirects followed up to ``MAX_REDIRECTS`` hops. A redirect that lands
anywhere on the platform outside ``/public_profiles/`` is how the platform
hides private profiles, so that case is reported as ``PrivateProfile``
without looking at the body.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

import requests

from . import const
from .errors import (
    EmptyResponse,
    HTTPError,
    InvalidURL,
    NetworkError,
    NetworkTimeout,
    PrivateProfile,
)
from .extractor import extract
from .models import RawProfileRecord
from .urls import is_platform_url, normalize_profile_url

logger = logging.getLogger(__name__)


class ProfileFetcher:
    def __init__(
        self,
        timeout: float = const.DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        max_redirects: int = const.MAX_REDIRECTS,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects
        self.session.headers.update({"User-Agent": const.USER_AGENT})

    def fetch(self, profile_url: str) -> str:
        """Return the raw markup of a public profile page."""
        normalized = normalize_profile_url(profile_url)
        if not normalized:
            raise InvalidURL(f"Invalid profile URL format: {profile_url!r}")

        logger.info("Fetching profile %s", normalized)
        try:
            r = self.session.get(normalized, timeout=self.timeout, allow_redirects=True)
        except requests.Timeout as e:
            raise NetworkTimeout("Request timeout: profile took too long to load") from e
        except requests.TooManyRedirects as e:
            raise NetworkError(f"Too many redirects fetching {normalized}") from e
        except requests.ConnectionError as e:
            raise NetworkError(f"Network error: could not connect to {const.PLATFORM_DOMAIN}") from e
        except requests.RequestException as e:
            raise NetworkError(f"Fetch error: {e}") from e

        final_url = r.url or normalized
        if is_platform_url(final_url) and const.PROFILE_PATH not in urlsplit(final_url).path:
            logger.info("Profile %s redirected to %s, treating as private", normalized, final_url)
            raise PrivateProfile(
                "Profile is private: redirected to homepage",
                reason="redirect",
            )

        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            raise HTTPError(r.status_code, r.reason) from e

        text = r.text
        if not text or not text.strip():
            raise EmptyResponse("Empty response received")
        return text

    def fetch_profile(self, profile_url: str) -> RawProfileRecord:
        """Fetch and extract a profile in one step."""
        normalized = normalize_profile_url(profile_url)
        markup = self.fetch(profile_url)
        record = extract(markup, profile_url=normalized)
        record.fetched_at = datetime.now(timezone.utc)
        logger.info(
            "Extracted %d badges and %d games from %s",
            len(record.badges),
            len(record.games),
            normalized,
        )
        return record
