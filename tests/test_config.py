from pathlib import Path

import pytest

from studyjams import const
from studyjams.config import (
    DEFAULT_CONFIG_DIR,
    Settings,
    load_allow_list,
    load_scoring_rules,
)
from studyjams.errors import ConfigError
from studyjams.models import ItemKind


def test_settings_defaults(monkeypatch):
    for name in ("STUDYJAMS_CONFIG_DIR", "STUDYJAMS_TEST_MODE", "STUDYJAMS_ENV", "PORT", "STUDYJAMS_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.config_dir == DEFAULT_CONFIG_DIR
    assert settings.port == 3001
    assert not settings.is_development
    assert settings.roster_path.name == const.ENROLLMENT_FILE


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STUDYJAMS_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("STUDYJAMS_TEST_MODE", "true")
    monkeypatch.setenv("STUDYJAMS_ENV", "Development")
    monkeypatch.setenv("STUDYJAMS_TIMEOUT", "12.5")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("STUDYJAMS_CORS_ORIGINS", "https://jams.example.com, http://localhost:3000")

    settings = Settings.from_env()

    assert settings.is_development
    assert settings.timeout == 12.5
    assert settings.port == 8080
    assert settings.roster_path == tmp_path / const.TEST_ENROLLMENT_FILE
    assert settings.cors_origins == ("https://jams.example.com", "http://localhost:3000")


def test_shipped_scoring_config():
    rules = load_scoring_rules(DEFAULT_CONFIG_DIR / const.SCORING_CONFIG_FILE)
    assert rules.badges["kubernetes"].points == 150
    assert rules.streak_tiers == ((20, 400), (10, 150), (5, 50))
    assert "Level 3: Generative AI" in rules.specific_items[ItemKind.GAME]


def test_missing_scoring_config_uses_defaults(tmp_path):
    rules = load_scoring_rules(tmp_path / "missing.json")
    assert rules.source["version"] == const.DEFAULT_SCORING_CONFIG["version"]
    assert rules.limits.max_badge_points == 500


def test_malformed_scoring_config(tmp_path):
    path = tmp_path / "scoringConfig.json"
    path.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_scoring_rules(path)


def test_scoring_config_must_be_object(tmp_path):
    path = tmp_path / "scoringConfig.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_scoring_rules(path)


def test_shipped_allow_list():
    allow_list = load_allow_list(DEFAULT_CONFIG_DIR / const.ALLOW_LIST_FILE)
    assert allow_list.badge_count == 19
    assert allow_list.game_count == 1
    assert len(allow_list) == 20
    game = next(e for e in allow_list.entries if e.kind is ItemKind.GAME)
    assert game.alternate_names == ("Arcade Level 3: Generative AI",)


def test_missing_allow_list_allows_all(tmp_path):
    allow_list = load_allow_list(Path(tmp_path) / "missing.json")
    assert len(allow_list) == 0
