"""RequestTracker: resolve, cancel and timeout."""

from frame_commander.core.requests import RequestState, RequestTracker


def test_resolve_once():
    tracker = RequestTracker()
    handle = tracker.open("load_tasks", "/a")

    assert tracker.pending("load_tasks") == [handle]
    assert tracker.resolve(handle.request_id) is handle
    assert handle.state is RequestState.RESOLVED
    assert tracker.resolve(handle.request_id) is None
    assert tracker.resolve("unknown") is None
    assert tracker.resolve("") is None


def test_cancelled_result_is_swallowed():
    tracker = RequestTracker()
    handle = tracker.open("classify", "/a")
    handle.cancel()

    assert handle.state is RequestState.CANCELLED
    assert tracker.pending() == []
    assert tracker.resolve(handle.request_id) is None


def test_without_timeout_requests_never_expire():
    tracker = RequestTracker(clock=lambda: 0.0)
    handle = tracker.open("read_file", "/a/b.py")

    assert handle.deadline is None
    assert tracker.expire(now=10_000.0) == []
    assert handle.pending


def test_timeout_runs_callbacks_and_drops_late_result():
    tracker = RequestTracker(default_timeout_s=2.0, clock=lambda: 100.0)
    handle = tracker.open("read_file", "/a/b.py")
    fired = []
    handle.on_timeout(fired.append)

    assert tracker.expire(now=101.9) == []
    assert tracker.expire(now=102.0) == [handle]
    assert handle.state is RequestState.TIMED_OUT
    assert fired == [handle]
    assert tracker.resolve(handle.request_id) is None


def test_per_request_timeout_overrides_default():
    tracker = RequestTracker(default_timeout_s=30.0, clock=lambda: 0.0)
    handle = tracker.open("write_file", "/a/b.py", timeout_s=1.0)
    assert handle.deadline == 1.0


def test_failing_timeout_callback_does_not_stop_sweep():
    tracker = RequestTracker(default_timeout_s=1.0, clock=lambda: 0.0)
    first = tracker.open("a", "/a")
    second = tracker.open("b", "/b")
    seen = []

    def broken(handle):
        raise RuntimeError("boom")

    first.on_timeout(broken)
    second.on_timeout(seen.append)

    assert tracker.expire(now=5.0) == [first, second]
    assert seen == [second]
