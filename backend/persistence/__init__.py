from .singleton import get_store, reset_store
from .store import STATE_KINDS, DuckDBOverlayStore, MemoryOverlayStore, OverlayStore
from .write_behind import WriteBehindQueue

__all__ = [
    "STATE_KINDS",
    "DuckDBOverlayStore",
    "MemoryOverlayStore",
    "OverlayStore",
    "WriteBehindQueue",
    "get_store",
    "reset_store",
]
