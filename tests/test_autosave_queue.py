from typing import List

from saga.services.autosave import AutoSaveQueue


def test_deferred_queue_collapses_duplicates() -> None:
    calls: List[str] = []
    queue = AutoSaveQueue(calls.append, immediate=False)

    assert queue.request("a")
    assert not queue.request("a")
    assert queue.request("b")
    assert calls == []
    assert queue.pending() == ["a", "b"]

    assert queue.drain() == ["a", "b"]
    assert calls == ["a", "b"]
    assert queue.pending() == []


def test_immediate_queue_runs_handler_on_request() -> None:
    calls: List[str] = []
    queue = AutoSaveQueue(calls.append)

    queue.request("a")
    queue.request("a")

    assert calls == ["a", "a"]


def test_requests_made_while_draining_are_processed_in_order() -> None:
    calls: List[str] = []
    queue = AutoSaveQueue()

    def _handler(trigger: str) -> None:
        calls.append(trigger)
        if trigger == "a":
            queue.request("b")

    queue.bind(_handler)
    queue.request("a")

    assert calls == ["a", "b"]


def test_drain_without_handler_keeps_requests() -> None:
    queue = AutoSaveQueue(immediate=False)
    queue.request("a")

    assert queue.drain() == []
    assert queue.pending() == ["a"]
    queue.clear()
    assert queue.pending() == []


def test_hold_defers_immediate_requests_until_outermost_exit() -> None:
    calls: List[str] = []
    queue = AutoSaveQueue(calls.append)

    with queue.hold():
        queue.request("a")
        with queue.hold():
            queue.request("b")
        assert calls == []
    assert calls == ["a", "b"]
    assert queue.pending() == []


def test_hold_on_deferred_queue_does_not_drain() -> None:
    calls: List[str] = []
    queue = AutoSaveQueue(calls.append, immediate=False)

    with queue.hold():
        queue.request("a")

    assert calls == []
    assert queue.pending() == ["a"]
