import threading
import pytest
from unittest.mock import MagicMock, patch
from music_admin.core.errors import BackendError, SessionExpired
from music_admin.core.single_flight import SingleFlight
from music_admin.services.query_cache import QueryCache, query_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(stale_time=300, gc_time=600, retry=1, clock=clock)


def test_query_key_drops_missing_params():
    assert query_key("users") == ("data", "users")
    assert query_key("users", 2, 10) == ("data", "users", 2, 10)
    assert query_key("users", None, None) == ("data", "users")


def test_fresh_entries_are_served_from_cache(cache, clock):
    fn = MagicMock(return_value=["a"])
    assert cache.fetch(("data", "users"), fn) == ["a"]
    clock.now += 299
    assert cache.fetch(("data", "users"), fn) == ["a"]
    fn.assert_called_once()


def test_stale_entries_are_refetched(cache, clock):
    fn = MagicMock(side_effect=[["a"], ["b"]])
    cache.fetch(("data", "users"), fn)
    clock.now += 301
    assert cache.fetch(("data", "users"), fn) == ["b"]
    assert fn.call_count == 2


def test_unused_entries_are_garbage_collected(cache, clock):
    cache.fetch(("data", "rooms"), lambda: ["r1"])
    clock.now += 601
    cache.fetch(("data", "users"), lambda: ["u1"])
    assert cache.get(("data", "rooms")) is None
    assert cache.get(("data", "users")) == ["u1"]


def test_invalidate_by_prefix(cache):
    fn_users = MagicMock(side_effect=[["u"], ["u2"]])
    fn_rooms = MagicMock(return_value=["r"])
    cache.fetch(("data", "users", 1, 10), fn_users)
    cache.fetch(("data", "rooms"), fn_rooms)

    assert cache.invalidate(("data", "users")) == 1

    assert cache.fetch(("data", "users", 1, 10), fn_users) == ["u2"]
    assert cache.fetch(("data", "rooms"), fn_rooms) == ["r"]
    fn_rooms.assert_called_once()


def test_reconnect_marks_everything_stale(cache):
    fn = MagicMock(side_effect=[1, 2])
    cache.fetch(("data", "dashboard"), fn)
    cache.mark_reconnected()
    assert cache.fetch(("data", "dashboard"), fn) == 2


def test_one_automatic_retry(cache):
    fn = MagicMock(side_effect=[BackendError("boom"), ["ok"]])
    assert cache.fetch(("data", "users"), fn) == ["ok"]
    assert fn.call_count == 2

    failing = MagicMock(side_effect=BackendError("still down"))
    with pytest.raises(BackendError):
        cache.fetch(("data", "courses"), failing)
    assert failing.call_count == 2


def test_session_expiry_is_not_retried(cache):
    fn = MagicMock(side_effect=SessionExpired(redirect="/login"))
    with pytest.raises(SessionExpired):
        cache.fetch(("data", "users"), fn)
    fn.assert_called_once()


def test_failed_fetch_is_not_cached(cache):
    cache.retry = 0
    fn = MagicMock(side_effect=[BackendError("boom"), ["ok"]])
    with pytest.raises(BackendError):
        cache.fetch(("data", "users"), fn)
    assert cache.fetch(("data", "users"), fn) == ["ok"]


def test_single_flight_coalesces_concurrent_calls():
    flight = SingleFlight()
    started, joined = threading.Event(), threading.Event()
    calls = []

    def slow():
        calls.append(1)
        started.set()
        joined.wait(timeout=5)
        return "value"

    results = []
    with patch("music_admin.core.single_flight.logger") as mock_logger:
        mock_logger.debug.side_effect = lambda *a, **k: joined.set()
        leader = threading.Thread(target=lambda: results.append(flight.do("k", slow)))
        leader.start()
        assert started.wait(timeout=5)
        assert flight.in_flight("k")

        follower = threading.Thread(target=lambda: results.append(flight.do("k", lambda: "other")))
        follower.start()
        leader.join(timeout=5)
        follower.join(timeout=5)

    assert results == ["value", "value"]
    assert len(calls) == 1
    assert not flight.in_flight("k")


def test_single_flight_releases_key_after_failure():
    flight = SingleFlight()
    with pytest.raises(ValueError):
        flight.do("k", lambda: (_ for _ in ()).throw(ValueError("nope")))
    # released after failure
    assert flight.do("k", lambda: 3) == 3
