from __future__ import annotations

import threading

from loguru import logger

from layers.errors import AnalysisNotFound
from layers.types import AnalysisData
from persistence.store import OverlayStore
from session.context import AnalysisSession
from settings.registry import get_settings

_SESSIONS: dict[str, AnalysisSession] = {}
_LOCK = threading.RLock()


def create_session(
    analysis_id: str,
    data: AnalysisData,
    *,
    store: OverlayStore,
    width: float | None = None,
    height: float | None = None,
) -> AnalysisSession:
    session = AnalysisSession(
        analysis_id,
        data,
        settings=get_settings(),
        width=width,
        height=height,
        store=store,
    )
    # First layout freezes the clusters; everything is then saved in one go.
    session.layout()
    session.save()
    with _LOCK:
        _SESSIONS[analysis_id] = session
    logger.info(f"Created analysis {analysis_id}")
    return session


def load_session(analysis_id: str, *, store: OverlayStore) -> AnalysisSession:
    with _LOCK:
        session = _SESSIONS.get(analysis_id)
        if session is not None:
            return session
        state = store.read(analysis_id)
        if not state.get("data"):
            raise AnalysisNotFound(analysis_id)
        session = AnalysisSession.from_state(
            analysis_id, state, settings=get_settings(), store=store
        )
        _SESSIONS[analysis_id] = session
        return session


def forget_session(analysis_id: str) -> None:
    """
    Drop an in-memory session without writing anything it still has pending.
    """
    with _LOCK:
        session = _SESSIONS.pop(analysis_id, None)
    if session is not None and session.queue is not None:
        with session.lock:
            session.queue.cancel()


def pump_sessions() -> int:
    """
    Write the due overlay changes of every open session; returns the number of writes.
    """
    with _LOCK:
        sessions = list(_SESSIONS.values())
    written = 0
    for session in sessions:
        written += len(session.pump())
    return written


def drop_sessions() -> None:
    """
    Flush and forget all in-memory sessions (tests, shutdown).
    """
    with _LOCK:
        for session in _SESSIONS.values():
            session.flush()
        _SESSIONS.clear()


class SessionPump:
    """
    Background thread that persists debounced edits once they settle, whether or not
    another request arrives.
    """

    def __init__(self, *, interval_s: float = 0.25):
        self.interval_s = float(interval_s)
        self._stop = threading.Event()
        self._worker: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, name="overlay-writer", daemon=True
        )
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                pump_sessions()
            except Exception:
                # The writer thread outlives any single failed tick.
                logger.exception("Background overlay write failed")
