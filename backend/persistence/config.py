from __future__ import annotations

import os
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def store_path() -> Path:
    return Path(
        os.getenv("POI_LAYOUT_STORE_PATH")
        or (_repo_root() / "data" / "analyses" / "layout.duckdb")
    )


def persistence_enabled() -> bool:
    v = (os.getenv("POI_LAYOUT_PERSIST") or "1").strip().lower()
    return v not in {"0", "false", "no", "off"}
