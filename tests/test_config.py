"""Tests for settings loading."""
from __future__ import annotations

from datetime import timedelta

import pytest

from paissa_house.config import Settings, SettingsLoader


@pytest.fixture(autouse=True)
def reset_env(monkeypatch):
    monkeypatch.delenv("PAISSA_HOUSE_SETTINGS", raising=False)
    monkeypatch.delenv("PAISSA_API_BASE", raising=False)
    yield


def test_default_settings():
    settings = SettingsLoader().load()

    assert settings.page_size == 9
    assert settings.retention == timedelta(days=7)
    assert (settings.sweep_hour, settings.sweep_minute) == (0, 0)
    assert settings.embed_colour == 0x8B5CF6
    assert settings.api_base_url == "https://paissadb.zhu.codes"


def test_settings_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "pagination:\n  page_size: 5\n  retention_days: 2\n  sweep:\n    hour: 3\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("PAISSA_HOUSE_SETTINGS", str(path))

    settings = SettingsLoader().load()

    assert settings.page_size == 5
    assert settings.retention_days == 2
    assert settings.sweep_hour == 3
    assert settings.sweep_minute == 0


def test_api_base_override(monkeypatch):
    monkeypatch.setenv("PAISSA_API_BASE", "http://localhost:8000/")

    settings = SettingsLoader().load()

    assert settings.api_base_url == "http://localhost:8000"


def test_loader_caches_until_forced(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("pagination:\n  page_size: 4\n", encoding="utf-8")
    loader = SettingsLoader(path)

    first = loader.load()
    path.write_text("pagination:\n  page_size: 6\n", encoding="utf-8")

    assert loader.load() is first
    assert loader.load(force=True).page_size == 6


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        Settings.from_dict({"pagination": {"page_size": 0}})


def test_hex_colour_string():
    settings = Settings.from_dict({"embed": {"colour": "#00FF00"}})

    assert settings.embed_colour == 0x00FF00
