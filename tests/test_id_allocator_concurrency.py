from concurrent.futures import ThreadPoolExecutor

import pytest

from labloop.services.id_allocator import IdAllocator


@pytest.fixture
def threaded_allocator(session_factory):
    return IdAllocator(
        session_factory, max_retries=5, backoff_seconds=0.01, allow_reset=True
    )


def test_concurrent_allocations_are_distinct(threaded_allocator):
    calls = 40

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: threaded_allocator.allocate("CASE"), range(calls)))

    assert len(set(ids)) == calls
    assert sorted(int(i[4:]) for i in ids) == list(range(1, calls + 1))
    assert threaded_allocator.get_info("CASE").sequence == calls


def test_concurrent_allocations_advance_from_current_value(threaded_allocator):
    threaded_allocator.reset("SMP", 500)
    calls = 24

    with ThreadPoolExecutor(max_workers=6) as pool:
        ids = list(pool.map(lambda _: threaded_allocator.allocate("SMP"), range(calls)))

    assert len(set(ids)) == calls
    assert min(ids) == "SMP00000501"
    assert threaded_allocator.get_info("SMP").sequence == 500 + calls
