from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from taskboard.core.errors import TransientOperationError


def test_next_is_monotonic_per_board(services, fake_redis) -> None:
    counter = services.counter
    assert [counter.next(42) for _ in range(3)] == [1, 2, 3]
    assert counter.next(7) == 1
    assert counter.current(42) == 3
    assert fake_redis.ttls["board:42:seq"] == 43200


def test_current_is_none_for_unknown_board(services) -> None:
    assert services.counter.current(999) is None


def test_expired_counter_starts_new_series(services, fake_redis) -> None:
    counter = services.counter
    for _ in range(5):
        counter.next(3)
    fake_redis.expire_board(3)
    assert counter.current(3) is None
    assert counter.next(3) == 1


def test_concurrent_callers_never_share_an_id(services) -> None:
    counter = services.counter
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: counter.next(11), range(400)))
    assert len(set(ids)) == 400
    assert sorted(ids) == list(range(1, 401))


def test_increment_failure_is_transient(services, fake_redis) -> None:
    counter = services.counter
    assert counter.next(5) == 1
    fake_redis.failing.add("incr")
    with pytest.raises(TransientOperationError):
        counter.next(5)
    fake_redis.failing.clear()
    assert counter.next(5) == 2
    assert services.connection.is_failed is False


def test_corrupt_counter_value_reads_as_none(services, fake_redis) -> None:
    services.counter.next(8)
    fake_redis.kv["board:8:seq"] = "not-a-number"
    assert services.counter.current(8) is None


def test_failed_connection_yields_no_ids(failed_services) -> None:
    assert failed_services.counter.next(1) is None
    assert failed_services.counter.current(1) is None
