"""Configuration loading utilities for PaissaHouse."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    page_size: int
    retention_days: int
    sweep_hour: int
    sweep_minute: int
    api_base_url: str
    api_timeout_seconds: float
    web_base_url: str
    embed_colour: int

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.retention_days)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        pagination = data.get("pagination", {})
        sweep_cfg = pagination.get("sweep", {})
        api_cfg = data.get("paissadb", {})
        embed_cfg = data.get("embed", {})
        page_size = int(pagination.get("page_size", 9))
        if page_size < 1:
            raise ValueError("pagination.page_size must be at least 1")
        colour = embed_cfg.get("colour", 0x8B5CF6)
        if isinstance(colour, str):
            colour = int(colour.lstrip("#"), 16)
        return Settings(
            page_size=page_size,
            retention_days=int(pagination.get("retention_days", 7)),
            sweep_hour=int(sweep_cfg.get("hour", 0)),
            sweep_minute=int(sweep_cfg.get("minute", 0)),
            api_base_url=str(api_cfg.get("api_base_url", "https://paissadb.zhu.codes")).rstrip("/"),
            api_timeout_seconds=float(api_cfg.get("timeout_seconds", 15)),
            web_base_url=str(api_cfg.get("web_base_url", "https://zhu.codes/paissa")),
            embed_colour=int(colour),
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        env_path = os.environ.get("PAISSA_HOUSE_SETTINGS")
        self._path = path or (Path(env_path) if env_path else DEFAULT_SETTINGS_PATH)
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        api_override = os.environ.get("PAISSA_API_BASE")
        if api_override:
            data.setdefault("paissadb", {})["api_base_url"] = api_override
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return SettingsLoader().load()


__all__ = ["Settings", "SettingsLoader", "get_settings"]
