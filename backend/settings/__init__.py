from .registry import clear_settings_cache, get_settings, settings_path
from .types import (
    ClusteringSettings,
    EditorSettings,
    LayoutSettings,
    OverlapSettings,
    PersistenceSettings,
    SizeBounds,
    SourceSettings,
    SurfaceSettings,
)

__all__ = [
    "ClusteringSettings",
    "EditorSettings",
    "LayoutSettings",
    "OverlapSettings",
    "PersistenceSettings",
    "SizeBounds",
    "SourceSettings",
    "SurfaceSettings",
    "clear_settings_cache",
    "get_settings",
    "settings_path",
]
