"""Exceptions raised by the fetch / extract / enrollment stages."""

from typing import Optional


class StudyJamsError(Exception):
    """Base class for every error the pipeline surfaces to callers."""

    retryable = False


class InvalidURL(StudyJamsError):
    """The input is not a public profile URL on the platform."""


class PrivateProfile(StudyJamsError):
    """The profile exists but is not publicly visible."""

    def __init__(self, message: str = "Profile is private", reason: str = ""):
        super().__init__(message)
        self.reason = reason


class NetworkError(StudyJamsError):
    """Transport level failure while fetching a profile."""

    retryable = True


class NetworkTimeout(NetworkError):
    """The profile fetch did not finish within the configured timeout."""


class EmptyResponse(NetworkError):
    """The platform answered with an empty body."""


class HTTPError(StudyJamsError):
    """The platform answered with a 4xx/5xx status."""

    def __init__(self, status_code: int, reason: Optional[str] = None):
        message = f"HTTP {status_code}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.status_code = status_code


class NotEnrolled(StudyJamsError):
    """The profile does not belong to a rostered participant."""


class ConfigError(StudyJamsError):
    """A configuration file exists but cannot be read."""
