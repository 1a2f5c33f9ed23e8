import re

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from labloop.constants.id_prefixes import MAX_SEQUENCE
from labloop.services.id_allocator import (
    AllocationExhausted,
    CounterOverflow,
    CounterResetForbidden,
    CounterStoreError,
    IdAllocator,
    InvalidPrefix,
    InvalidStartValue,
    format_id,
)


class FlakySessionFactory:
    """Raises a transient store error for the first `failures` sessions."""

    def __init__(self, factory, failures, error=None):
        self.factory = factory
        self.failures = failures
        self.error = error or OperationalError(
            "UPDATE id_counters", {}, Exception("database is locked")
        )
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise self.error
        return self.factory()


def test_sequential_allocation_has_no_gaps(allocator):
    ids = [allocator.allocate("PAT") for _ in range(5)]

    assert ids == [f"PAT0000000{n}" for n in range(1, 6)]
    sequences = [int(i[3:]) for i in ids]
    assert sequences == sorted(set(sequences))


def test_prefixes_have_independent_counters(allocator):
    assert allocator.allocate("USR") == "USR00000001"
    assert allocator.allocate("CASE") == "CASE00000001"
    assert allocator.allocate("USR") == "USR00000002"
    assert allocator.get_info("CASE").sequence == 1


@pytest.mark.parametrize("prefix", ["AB", "ABCDE"])
def test_boundary_prefix_lengths_are_accepted(allocator, prefix):
    assert allocator.allocate(prefix) == f"{prefix}00000001"


@pytest.mark.parametrize("prefix", ["A", "ABCDEF", "ab1", "usr", "", "US1", "USR\n", None])
def test_malformed_prefix_is_rejected(allocator, prefix):
    with pytest.raises(InvalidPrefix):
        allocator.allocate(prefix)


def test_invalid_prefix_never_touches_the_store(session_factory, sleeps):
    factory = FlakySessionFactory(session_factory, failures=0)
    allocator = IdAllocator(factory, sleep=sleeps.append)

    with pytest.raises(InvalidPrefix):
        allocator.allocate("x")
    assert factory.calls == 0


def test_allocated_id_matches_prefix_and_eight_digits(allocator):
    allocator.reset("LAB", 1234)
    generated = allocator.allocate("LAB")

    assert re.fullmatch(r"LAB\d{8}", generated)
    assert generated == "LAB00001235"


def test_reset_then_allocate_continues_after_start_value(allocator):
    allocator.allocate("USR")
    allocator.reset("USR", 41)

    assert allocator.allocate("USR") == "USR00000042"


def test_counter_at_maximum_overflows_without_mutation(allocator, sleeps):
    allocator.reset("SMP", MAX_SEQUENCE)

    with pytest.raises(CounterOverflow) as exc_info:
        allocator.allocate("SMP")

    assert exc_info.value.prefix == "SMP"
    assert allocator.get_info("SMP").sequence == MAX_SEQUENCE
    assert sleeps == []


def test_last_value_is_issued_before_overflow(allocator):
    allocator.reset("INV", MAX_SEQUENCE - 1)

    assert allocator.allocate("INV") == "INV99999999"
    with pytest.raises(CounterOverflow):
        allocator.allocate("INV")


def test_peek_next_is_read_only(allocator):
    allocator.allocate("RPT")

    assert allocator.peek_next("RPT") == "RPT00000002"
    assert allocator.peek_next("RPT") == "RPT00000002"
    assert allocator.allocate("RPT") == "RPT00000002"


def test_peek_next_on_unused_prefix_does_not_create_counter(allocator):
    assert allocator.peek_next("DEV") == "DEV00000001"
    assert allocator.get_info("DEV") is None


def test_peek_next_on_exhausted_counter_overflows(allocator):
    allocator.reset("TST", MAX_SEQUENCE)

    with pytest.raises(CounterOverflow):
        allocator.peek_next("TST")


def test_get_info_before_and_after_first_allocation(allocator):
    assert allocator.get_info("ORG") is None

    allocator.allocate("ORG")
    info = allocator.get_info("ORG")

    assert info.to_dict() == {
        "prefix": "ORG",
        "sequence": 1,
        "next_id": "ORG00000002",
        "remaining": 99999998,
    }
    assert not info.exhausted


def test_get_info_on_exhausted_counter(allocator):
    allocator.reset("APT", MAX_SEQUENCE)
    info = allocator.get_info("APT")

    assert info.remaining == 0
    assert info.next_id is None
    assert info.exhausted


def test_list_info_is_sorted_by_prefix(allocator):
    allocator.allocate("USR")
    allocator.allocate("CASE")
    allocator.allocate("LAB")

    assert [info.prefix for info in allocator.list_info()] == ["CASE", "LAB", "USR"]


def test_reset_is_refused_when_disabled(session_factory):
    allocator = IdAllocator(session_factory, allow_reset=False)
    allocator.allocate("USR")

    with pytest.raises(CounterResetForbidden):
        allocator.reset("USR", 0)
    assert allocator.get_info("USR").sequence == 1


@pytest.mark.parametrize("start_from", [-1, MAX_SEQUENCE + 1, True, 1.5, "10"])
def test_reset_rejects_out_of_range_start(allocator, start_from):
    with pytest.raises(InvalidStartValue):
        allocator.reset("USR", start_from)


def test_transient_errors_are_retried_with_backoff(session_factory, sleeps):
    factory = FlakySessionFactory(session_factory, failures=2)
    allocator = IdAllocator(factory, max_retries=3, sleep=sleeps.append)

    assert allocator.allocate("PAT") == "PAT00000001"
    assert factory.calls == 3
    assert sleeps == pytest.approx([0.1, 0.2])


def test_persistent_transient_errors_exhaust_allocation(session_factory, sleeps):
    factory = FlakySessionFactory(session_factory, failures=10)
    allocator = IdAllocator(factory, max_retries=3, sleep=sleeps.append)

    with pytest.raises(AllocationExhausted) as exc_info:
        allocator.allocate("PAT")

    error = exc_info.value
    assert factory.calls == 3
    assert isinstance(error.last_error, OperationalError)
    assert error.__cause__ is error.last_error
    assert error.prefix == "PAT"
    assert sleeps == pytest.approx([0.1, 0.2])


def test_non_transient_store_errors_are_not_retried(session_factory, sleeps):
    integrity_error = IntegrityError("INSERT", {}, Exception("CHECK constraint failed"))
    factory = FlakySessionFactory(session_factory, failures=1, error=integrity_error)
    allocator = IdAllocator(factory, sleep=sleeps.append)

    with pytest.raises(CounterStoreError) as exc_info:
        allocator.allocate("PAT")
    assert exc_info.value.prefix == "PAT"
    assert exc_info.value.__cause__ is integrity_error
    assert factory.calls == 1
    assert sleeps == []


def test_max_retries_must_be_positive(session_factory):
    with pytest.raises(ValueError):
        IdAllocator(session_factory, max_retries=0)


def test_format_id_pads_to_eight_digits():
    assert format_id("USR", 42) == "USR00000042"
    assert format_id("CASE", MAX_SEQUENCE) == "CASE99999999"
