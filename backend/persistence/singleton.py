from __future__ import annotations

import threading

import duckdb
from loguru import logger

from persistence.config import persistence_enabled, store_path
from persistence.store import DuckDBOverlayStore, MemoryOverlayStore, OverlayStore

_STORE: DuckDBOverlayStore | None = None
_MEMORY: MemoryOverlayStore | None = None
_STORE_LOCK = threading.RLock()


def get_store() -> OverlayStore:
    global _STORE, _MEMORY
    with _STORE_LOCK:
        if not persistence_enabled():
            if _MEMORY is None:
                _MEMORY = MemoryOverlayStore()
            return _MEMORY

        path = store_path()
        if _STORE is not None:
            # The configured path can change across tests; reopen on the new one.
            if _STORE.path.resolve() == path.resolve():
                return _STORE
            try:
                _STORE.close()
            except Exception as e:
                logger.warning(f"Closing overlay store {_STORE.path} failed: {e}")
            _STORE = None

        path.parent.mkdir(parents=True, exist_ok=True)
        conn = duckdb.connect(str(path))
        _STORE = DuckDBOverlayStore(path=path, conn=conn)
        _STORE.ensure_schema()
        logger.info(f"Overlay store opened at {path}")
        return _STORE


def reset_store() -> None:
    global _STORE, _MEMORY
    with _STORE_LOCK:
        _MEMORY = None
        if _STORE is not None:
            _STORE.reset()
            _STORE = None
        else:
            store_path().unlink(missing_ok=True)
