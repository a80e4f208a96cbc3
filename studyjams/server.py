#!/usr/bin/env python3
"""
FastAPI server exposing the points calculator to the static front end.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import Settings, configure_logging
from .errors import InvalidURL, NotEnrolled, PrivateProfile
from .pipeline import ProfileScorer
from .urls import normalize_profile_url

logger = logging.getLogger(__name__)

NOT_ENROLLED_MESSAGE = (
    "Profile not found in enrolled participants list. "
    "Please contact the program administrator."
)
PRIVATE_MESSAGE = (
    "This profile is private. Set your Cloud Skills Boost profile to public and try again."
)
GENERIC_ERROR_MESSAGE = "Failed to calculate points. Please try again later."
INVALID_URL_MESSAGE = "Invalid profile URL format"


class ProfileRequest(BaseModel):
    profileUrl: Optional[str] = None


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def create_app(scorer: Optional[ProfileScorer] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    scorer = scorer or ProfileScorer.from_settings(settings)

    app = FastAPI(
        title="GDG Cloud Study Jams Points API",
        description="Verify enrolled participants and score their Cloud Skills Boost profiles",
        version="1.0.0",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.scorer = scorer
    app.state.settings = settings

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        # Unreadable JSON or a non-string profileUrl
        logger.debug("Rejected request body for %s: %s", request.url.path, exc.errors())
        if request.url.path == "/api/check-profile":
            return JSONResponse(status_code=400, content={"success": False, "error": INVALID_URL_MESSAGE})
        return _error(400, INVALID_URL_MESSAGE)

    # Handlers are sync so the blocking profile fetch runs in the threadpool.

    @app.post("/api/calculate-points")
    def calculate_points(body: ProfileRequest):
        """
        Check enrollment, fetch the profile and return its score breakdown.
        """
        profile_url = (body.profileUrl or "").strip()
        if not profile_url:
            return _error(400, "Profile URL is required")
        if not normalize_profile_url(profile_url):
            return _error(400, INVALID_URL_MESSAGE)

        try:
            report = scorer.calculate(profile_url)
        except InvalidURL:
            return _error(400, INVALID_URL_MESSAGE)
        except NotEnrolled:
            return _error(403, NOT_ENROLLED_MESSAGE, enrolled=False)
        except PrivateProfile:
            return _error(500, PRIVATE_MESSAGE, private=True)
        except Exception as e:
            logger.exception("Error calculating points for %s", profile_url)
            extra = {"details": str(e)} if settings.is_development else {}
            return _error(500, GENERIC_ERROR_MESSAGE, **extra)
        return report.to_dict()

    @app.post("/api/check-profile")
    def check_profile(body: ProfileRequest):
        """Report whether a profile is publicly accessible. No enrollment check."""
        profile_url = (body.profileUrl or "").strip()
        if not profile_url:
            return JSONResponse(status_code=400, content={"success": False, "error": "Profile URL is required"})
        if not normalize_profile_url(profile_url):
            return JSONResponse(status_code=400, content={"success": False, "error": INVALID_URL_MESSAGE})
        return scorer.check_profile(profile_url).to_dict()

    @app.get("/api/participants")
    def participants():
        people = [
            {"name": p.display_name, "profileId": p.profile_identifier, "profileUrl": p.profile_url}
            for p in scorer.roster.list_participants()
        ]
        return {
            "success": True,
            "testMode": settings.test_mode,
            "totalParticipants": len(people),
            "participants": people,
        }

    @app.get("/api/scoring-config")
    def scoring_config():
        return {"success": True, "config": dict(scorer.rules.source)}

    @app.get("/health")
    def health():
        """Health check endpoint"""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "Cloud Skills Boost Calculator",
        }

    return app


def main():
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info("Starting points server on http://%s:%s", settings.host, settings.port)
    logger.info("API documentation available at http://localhost:%s/docs", settings.port)

    uvicorn.run(
        "studyjams.server:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == '__main__':
    main()
