from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from loguru import logger

from settings.types import LayoutSettings


def _repo_root() -> Path:
    # .../backend/settings/registry.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def settings_path() -> Path:
    return Path(
        os.getenv("POI_LAYOUT_CONFIG") or (_repo_root() / "config" / "layout.yaml")
    )


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_settings() -> LayoutSettings:
    path = settings_path()
    if not path.exists():
        logger.debug(f"No settings file at {path}; using defaults")
        return LayoutSettings()
    cfg = LayoutSettings.model_validate(_load_yaml(path))
    logger.info(f"Loaded layout settings from {path}")
    return cfg


def clear_settings_cache() -> None:
    """
    Clear the cached settings so the next `get_settings()` re-reads the YAML file.
    """
    get_settings.cache_clear()
