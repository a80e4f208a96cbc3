"""
Runtime settings and the flat-file configuration loaders.

Settings come from environment variables. The scoring rubric and the
allow-list are JSON files in the config directory; each load returns a fresh
snapshot that the caller hands to the scoring engine.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from . import const
from .errors import ConfigError
from .models import AllowList, ScoringRule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:3001",
    "http://localhost:8000",
    "http://127.0.0.1:3001",
    "http://127.0.0.1:8000",
)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    config_dir: Path = DEFAULT_CONFIG_DIR
    test_mode: bool = False
    environment: str = "production"
    timeout: float = const.DEFAULT_TIMEOUT
    host: str = "0.0.0.0"
    port: int = 3001
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def scoring_config_path(self) -> Path:
        return self.config_dir / const.SCORING_CONFIG_FILE

    @property
    def allow_list_path(self) -> Path:
        return self.config_dir / const.ALLOW_LIST_FILE

    @property
    def roster_path(self) -> Path:
        name = const.TEST_ENROLLMENT_FILE if self.test_mode else const.ENROLLMENT_FILE
        return self.config_dir / name

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("STUDYJAMS_CORS_ORIGINS")
        return cls(
            config_dir=Path(os.environ.get("STUDYJAMS_CONFIG_DIR", DEFAULT_CONFIG_DIR)),
            test_mode=_env_flag("STUDYJAMS_TEST_MODE"),
            environment=os.environ.get("STUDYJAMS_ENV", "production").strip().lower(),
            timeout=float(os.environ.get("STUDYJAMS_TIMEOUT", const.DEFAULT_TIMEOUT)),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", 3001)),
            debug=_env_flag("DEBUG"),
            log_level=os.environ.get("STUDYJAMS_LOG_LEVEL", "INFO").upper(),
            cors_origins=(
                tuple(o.strip() for o in origins.split(",") if o.strip())
                if origins
                else DEFAULT_CORS_ORIGINS
            ),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def read_json(path: Path) -> Optional[Any]:
    """Return the parsed file, or None when it does not exist."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e


def load_scoring_rules(path: Optional[Path] = None) -> ScoringRule:
    data = read_json(path) if path is not None else None
    if data is None:
        logger.info("Scoring config not found at %s, using default rubric", path)
        data = const.DEFAULT_SCORING_CONFIG
    if not isinstance(data, Mapping):
        raise ConfigError(f"Scoring config {path} must be a JSON object")
    return ScoringRule.from_dict(data)


def load_allow_list(path: Optional[Path] = None) -> AllowList:
    data = read_json(path) if path is not None else None
    if data is None:
        logger.info("Allow-list not found at %s, allowing all items", path)
        return AllowList()
    if not isinstance(data, Mapping):
        raise ConfigError(f"Allow-list {path} must be a JSON object")
    allow_list = AllowList.from_dict(data)
    logger.info(
        "Loaded allow-list: %d entries (%d badges, %d games)",
        len(allow_list),
        allow_list.badge_count,
        allow_list.game_count,
    )
    return allow_list
