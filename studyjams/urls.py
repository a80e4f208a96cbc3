"""Profile URL validation and canonicalization."""

import re
from typing import Optional
from urllib.parse import urlsplit

from . import const

PROFILE_URL_RE = re.compile(
    r"(?:https?://)?(?:www\.)?cloudskillsboost\.google/public_profiles/([A-Za-z0-9\-_]+)/?(?:[?#].*)?",
    re.IGNORECASE,
)


def extract_profile_id(profile_url) -> Optional[str]:
    """Return the opaque profile id from a profile URL, or None."""
    if not profile_url or not isinstance(profile_url, str):
        return None
    match = PROFILE_URL_RE.fullmatch(profile_url.strip())
    return match.group(1) if match else None


def normalize_profile_url(profile_url) -> Optional[str]:
    """Return the canonical ``https://www.<domain>/public_profiles/<id>`` form.

    Idempotent: a canonical URL normalizes to itself.
    """
    profile_id = extract_profile_id(profile_url)
    if profile_id is None:
        return None
    return build_profile_url(profile_id)


def build_profile_url(profile_id: str) -> str:
    return f"{const.PLATFORM_ORIGIN}{const.PROFILE_PATH}{profile_id}"


def is_platform_url(url: str) -> bool:
    host = (urlsplit(url).hostname or "").lower()
    return host == const.PLATFORM_DOMAIN or host.endswith("." + const.PLATFORM_DOMAIN)


def absolute_url(href: str) -> str:
    """Prefix platform-relative paths with the platform origin."""
    if not href:
        return ""
    href = href.strip()
    if href.startswith("//"):
        return "https:" + href
    if href.startswith("/"):
        return const.PLATFORM_ORIGIN + href
    return href


def path_segments(url: str):
    return [segment for segment in urlsplit(url or "").path.split("/") if segment]
