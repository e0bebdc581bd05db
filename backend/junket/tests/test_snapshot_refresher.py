"""
Tests for per-trip refresh coordination.
"""
import threading
import time

from junket.services.snapshot_refresher import SnapshotRefresher


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        time.sleep(0.001)


def test_refresh_returns_loaded_snapshot():
    refresher = SnapshotRefresher()

    assert refresher.refresh(1, lambda trip_id: {"trip": trip_id}) == {"trip": 1}
    assert refresher.latest_token(1) > 0


def test_snapshot_is_released_after_refresh():
    refresher = SnapshotRefresher()
    refresher.refresh(1, lambda trip_id: "one")

    # Only the token is kept once nobody is waiting on the trip
    assert refresher.latest(1) is None
    assert refresher._trip_locks == {}
    assert refresher._retained == {}


def test_stale_publish_is_discarded():
    refresher = SnapshotRefresher()
    old_token = refresher.next_token()
    new_token = refresher.next_token()

    assert refresher.publish(1, new_token, "new")
    assert not refresher.publish(1, old_token, "old")
    assert refresher.latest_token(1) == new_token


def test_trips_are_independent():
    refresher = SnapshotRefresher()

    assert refresher.refresh(1, lambda trip_id: "one") == "one"
    assert refresher.refresh(2, lambda trip_id: "two") == "two"
    assert refresher.latest_token(2) > refresher.latest_token(1)


def test_forget_drops_token():
    refresher = SnapshotRefresher()
    refresher.refresh(1, lambda trip_id: "one")
    refresher.forget(1)

    assert refresher.latest_token(1) == 0


def test_waiting_callers_reuse_newer_load():
    refresher = SnapshotRefresher()
    release = threading.Event()
    calls = []
    results = []

    def slow_loader(trip_id):
        calls.append("slow")
        release.wait(2)
        return "first"

    def loader(trip_id):
        calls.append("fresh")
        return "second"

    first = threading.Thread(target=refresher.refresh, args=(1, slow_loader))
    first.start()
    wait_for(lambda: calls == ["slow"])

    waiters = [
        threading.Thread(target=lambda: results.append(refresher.refresh(1, loader)))
        for _ in range(2)
    ]
    for thread in waiters:
        thread.start()
    wait_for(lambda: refresher._waiters.get(1) == 3)

    release.set()
    first.join()
    for thread in waiters:
        thread.join()

    # One of the queued callers loads; the other reuses that result
    assert calls == ["slow", "fresh"]
    assert results == ["second", "second"]
    assert refresher.latest(1) is None


def test_forget_during_load_keeps_lock():
    refresher = SnapshotRefresher()
    release = threading.Event()
    active = []
    overlaps = []
    lock = threading.Lock()

    def loader(trip_id):
        with lock:
            active.append(trip_id)
            if len(active) > 1:
                overlaps.append(list(active))
        release.wait(2)
        with lock:
            active.remove(trip_id)
        return "snapshot"

    first = threading.Thread(target=refresher.refresh, args=(1, loader))
    first.start()
    wait_for(lambda: active == [1])

    refresher.forget(1)
    second = threading.Thread(target=refresher.refresh, args=(1, loader))
    second.start()
    wait_for(lambda: refresher._waiters.get(1) == 2 or len(active) > 1)
    release.set()
    first.join()
    second.join()

    assert overlaps == []


def test_concurrent_refreshes_do_not_overlap():
    refresher = SnapshotRefresher()
    active = []
    overlaps = []
    results = []
    lock = threading.Lock()

    def loader(trip_id):
        with lock:
            active.append(trip_id)
            if len(active) > 1:
                overlaps.append(list(active))
        time.sleep(0.01)
        with lock:
            active.remove(trip_id)
        return "snapshot"

    threads = [
        threading.Thread(target=lambda: results.append(refresher.refresh(1, loader)))
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert results == ["snapshot"] * 8
    assert refresher._trip_locks == {}
