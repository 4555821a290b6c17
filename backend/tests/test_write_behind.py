from __future__ import annotations

from loguru import logger

from persistence.write_behind import WriteBehindQueue


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _queue(writes, clock, writer=None):
    return WriteBehindQueue(
        writer or (lambda kind, payload: writes.append((kind, payload))),
        debounce_seconds={"dragged": 1.0, "resized": 0.5, "selection": 2.0},
        default_seconds=1.0,
        clock=clock,
    )


def test_write_happens_after_debounce():
    writes, clock = [], FakeClock()
    q = _queue(writes, clock)
    q.schedule("dragged", lambda: {"poi": {}})
    assert q.pending() == ["dragged"]

    clock.now = 0.9
    assert q.pump() == []
    clock.now = 1.0
    assert q.pump() == ["dragged"]
    assert writes == [("dragged", {"poi": {}})]
    assert q.pending() == []


def test_burst_coalesces_into_one_write_of_final_state():
    writes, clock = [], FakeClock()
    q = _queue(writes, clock)
    state = {"n": 0}
    for i in range(5):
        clock.now = i * 0.3
        state["n"] = i
        q.schedule("dragged", lambda: dict(state))
        q.pump()
    assert writes == []

    assert q.pump(now=10.0) == ["dragged"]
    assert writes == [("dragged", {"n": 4})]


def test_kinds_have_independent_timers():
    writes, clock = [], FakeClock()
    q = _queue(writes, clock)
    q.schedule("dragged", lambda: 1)
    q.schedule("resized", lambda: 2)
    q.schedule("rotations", lambda: 3)
    assert q.pending() == ["dragged", "resized", "rotations"]

    assert q.pump(now=0.5) == ["resized"]
    assert sorted(q.pump(now=1.0)) == ["dragged", "rotations"]


def test_flush_and_cancel():
    writes, clock = [], FakeClock()
    q = _queue(writes, clock)
    q.schedule("dragged", lambda: 1)
    q.schedule("selection", lambda: 2)
    q.cancel("dragged")
    assert q.flush() == ["selection"]
    assert writes == [("selection", 2)]

    q.schedule("resized", lambda: 3)
    q.cancel()
    assert q.flush() == []


def test_failed_write_is_logged_and_dropped():
    clock = FakeClock()
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="WARNING")

    def broken(kind, payload):
        raise OSError("disk full")

    try:
        q = _queue([], clock, writer=broken)
        q.schedule("dragged", lambda: 1)
        assert q.flush() == []
    finally:
        logger.remove(handler_id)

    assert q.pending() == []
    assert any("dragged" in m and "disk full" in m for m in messages)
