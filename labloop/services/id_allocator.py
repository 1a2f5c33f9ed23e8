"""
ID Allocator - Sequential human-facing identifiers.

Issues identifiers such as USR00000001: a 2-5 letter prefix followed by an
8-digit zero-padded sequence taken from the prefix's counter row.

- Allocation is one conditional UPDATE ... RETURNING, so the database row
  lock is the only coordination between concurrent callers
- Counters stop at 99,999,999 and fail closed (no wrap, no truncation)
- Transient store errors are retried with exponential backoff
- Each attempt runs in its own short transaction, committed before the
  identifier is handed out
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from labloop.constants.id_prefixes import (
    ENTITY_ID_PREFIXES,
    MAX_SEQUENCE,
    PREFIX_PATTERN,
    SEQUENCE_DIGITS,
    id_regex,
)
from labloop.repositories.counter_repository import (
    ensure_counter,
    get_sequence,
    increment_below_ceiling,
    list_counters,
    set_sequence,
)

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(PREFIX_PATTERN)

# Lock contention, dropped connections and pool exhaustion
TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
)


class IdGenerationError(Exception):
    def __init__(self, message: str, prefix: Optional[str] = None):
        super().__init__(message)
        self.prefix = prefix


class InvalidPrefix(IdGenerationError):
    pass


class CounterOverflow(IdGenerationError):
    pass


class AllocationExhausted(IdGenerationError):
    def __init__(
        self,
        message: str,
        prefix: Optional[str] = None,
        last_error: Optional[BaseException] = None,
    ):
        super().__init__(message, prefix)
        self.last_error = last_error


class InvalidStartValue(IdGenerationError):
    pass


class CounterResetForbidden(IdGenerationError):
    pass


class CounterStoreError(IdGenerationError):
    pass


@dataclass
class CounterInfo:
    prefix: str
    sequence: int
    next_id: Optional[str]
    remaining: int

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    def to_dict(self) -> dict:
        return {
            "prefix": self.prefix,
            "sequence": self.sequence,
            "next_id": self.next_id,
            "remaining": self.remaining,
        }


def validate_prefix(prefix: str) -> None:
    """
    Check that a prefix is 2-5 uppercase ASCII letters.

    Raises:
        InvalidPrefix: If the prefix is not a string or has the wrong shape
    """
    if not isinstance(prefix, str) or not prefix:
        raise InvalidPrefix("Prefix must be a non-empty string")

    if not _PREFIX_RE.fullmatch(prefix):
        raise InvalidPrefix(
            f'Invalid prefix format: "{prefix}". '
            "Must be 2-5 uppercase letters (e.g., USR, PAT, LAB)",
            prefix,
        )


def format_id(prefix: str, sequence: int) -> str:
    """
    Format an identifier and verify its shape.

    Example:
        >>> format_id("USR", 42)
        "USR00000042"
    """
    generated = f"{prefix}{sequence:0{SEQUENCE_DIGITS}d}"
    if not id_regex(prefix).fullmatch(generated):
        raise IdGenerationError(
            f'Generated ID "{generated}" does not match expected format '
            f'"{prefix}{"X" * SEQUENCE_DIGITS}"',
            prefix,
        )
    return generated


class IdAllocator:
    """
    Allocates sequential identifiers per prefix.

    Holds only a session factory; all counter state lives in the database.
    Safe to share between threads and requests.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        max_retries: int = 3,
        backoff_seconds: float = 0.1,
        allow_reset: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.session_factory = session_factory
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.allow_reset = allow_reset
        self._sleep = sleep

    def allocate(self, prefix: str) -> str:
        """
        Issue the next identifier for a prefix.

        Args:
            prefix: 2-5 uppercase letters (USR, PAT, CASE...)

        Returns:
            Identifier string, e.g. "PAT00000001"

        Raises:
            InvalidPrefix: Malformed prefix (not retried)
            CounterOverflow: Counter already at 99,999,999 (not retried)
            AllocationExhausted: Transient store errors on every attempt
            CounterStoreError: Non-transient store error (not retried)
        """
        validate_prefix(prefix)

        last_error: Optional[Exception] = None
        delay = self.backoff_seconds

        for attempt in range(1, self.max_retries + 1):
            try:
                sequence = self._increment(prefix)
            except TRANSIENT_ERRORS as e:
                last_error = e
                if attempt < self.max_retries:
                    logger.warning(
                        f"ID allocation for {prefix} failed "
                        f"(attempt {attempt}/{self.max_retries}), "
                        f"retrying in {delay:.2f}s: {e}"
                    )
                    self._sleep(delay)
                    delay *= 2
                continue
            except SQLAlchemyError as e:
                logger.error(f"ID allocation for {prefix} failed: {e}")
                raise CounterStoreError(
                    f'Failed to generate ID for prefix "{prefix}": {e}', prefix
                ) from e

            return format_id(prefix, sequence)

        logger.error(
            f"ID allocation for {prefix} failed after {self.max_retries} attempts: "
            f"{last_error}"
        )
        raise AllocationExhausted(
            f'Failed to generate ID for prefix "{prefix}" after '
            f"{self.max_retries} attempts. Last error: {last_error}",
            prefix,
            last_error,
        ) from last_error

    def _increment(self, prefix: str) -> int:
        with self.session_factory() as db:
            sequence = increment_below_ceiling(db, prefix, MAX_SEQUENCE)

            if sequence is None and get_sequence(db, prefix) is None:
                # First use of this prefix
                ensure_counter(db, prefix)
                sequence = increment_below_ceiling(db, prefix, MAX_SEQUENCE)

            if sequence is None:
                db.rollback()
                logger.error(f"ID counter {prefix} reached maximum ({MAX_SEQUENCE})")
                raise CounterOverflow(
                    f"Counter overflow: {prefix} has reached maximum value "
                    f"({MAX_SEQUENCE}). Cannot generate more IDs with "
                    f"{SEQUENCE_DIGITS}-digit format.",
                    prefix,
                )

            db.commit()
            return sequence

    def peek_next(self, prefix: str) -> str:
        """
        Preview the identifier the next allocate() would return.

        Nothing is reserved: a concurrent caller may take this value first.
        """
        validate_prefix(prefix)

        sequence = self._read_sequence(prefix, "preview next ID")
        next_sequence = (sequence or 0) + 1
        if next_sequence > MAX_SEQUENCE:
            raise CounterOverflow(
                f"Next ID would overflow: {prefix} next sequence ({next_sequence}) "
                f"exceeds maximum ({MAX_SEQUENCE})",
                prefix,
            )
        return format_id(prefix, next_sequence)

    def get_info(self, prefix: str) -> Optional[CounterInfo]:
        """
        Diagnostic view of a counter.

        Returns:
            CounterInfo, or None if the prefix was never used
        """
        validate_prefix(prefix)

        sequence = self._read_sequence(prefix, "get counter info")
        if sequence is None:
            return None
        return self._build_info(prefix, sequence)

    def list_info(self) -> list[CounterInfo]:
        try:
            with self.session_factory() as db:
                counters = [(c.prefix, c.sequence) for c in list_counters(db)]
        except SQLAlchemyError as e:
            raise CounterStoreError(f"Failed to list counters: {e}") from e
        return [self._build_info(prefix, sequence) for prefix, sequence in counters]

    def reset(self, prefix: str, start_from: int = 0) -> None:
        """
        Set a counter to an explicit value. The next allocate() returns
        start_from + 1.

        WARNING: issuing IDs at or below start_from again produces duplicates
        of identifiers that may still be referenced.

        Raises:
            CounterResetForbidden: Resets are disabled in this environment
            InvalidStartValue: start_from outside 0..99,999,999
        """
        validate_prefix(prefix)

        if not self.allow_reset:
            raise CounterResetForbidden(
                f"Counter reset is disabled in this environment (prefix {prefix})",
                prefix,
            )

        if (
            isinstance(start_from, bool)
            or not isinstance(start_from, int)
            or start_from < 0
            or start_from > MAX_SEQUENCE
        ):
            raise InvalidStartValue(
                f"Invalid start_from value: {start_from}. "
                f"Must be integer between 0 and {MAX_SEQUENCE}",
                prefix,
            )

        try:
            with self.session_factory() as db:
                set_sequence(db, prefix, start_from)
                db.commit()
        except SQLAlchemyError as e:
            raise CounterStoreError(
                f'Failed to reset counter for prefix "{prefix}": {e}', prefix
            ) from e

        logger.warning(f"ID counter {prefix} reset to {start_from}")

    def _read_sequence(self, prefix: str, action: str) -> Optional[int]:
        try:
            with self.session_factory() as db:
                return get_sequence(db, prefix)
        except SQLAlchemyError as e:
            raise CounterStoreError(
                f'Failed to {action} for prefix "{prefix}": {e}', prefix
            ) from e

    @staticmethod
    def _build_info(prefix: str, sequence: int) -> CounterInfo:
        remaining = MAX_SEQUENCE - sequence
        next_id = format_id(prefix, sequence + 1) if remaining > 0 else None
        return CounterInfo(
            prefix=prefix, sequence=sequence, next_id=next_id, remaining=remaining
        )


class EntityIdError(RuntimeError):
    """Raised when an entity cannot be created because its ID was not issued."""

    def __init__(self, message: str, entity_type: str, field: str):
        super().__init__(message)
        self.entity_type = entity_type
        self.field = field


def allocate_entity_id(allocator: IdAllocator, entity_type: str) -> str:
    """
    Allocate the human-facing identifier for a new entity.

    Args:
        allocator: IdAllocator to use
        entity_type: Key of ENTITY_ID_PREFIXES ("Patient", "Case"...)

    Returns:
        Identifier for the entity's number field

    Raises:
        KeyError: Unknown entity type
        EntityIdError: Allocation failed; the entity must not be created
    """
    prefix, field = ENTITY_ID_PREFIXES[entity_type]

    try:
        return allocator.allocate(prefix)
    except IdGenerationError as e:
        message = f"Failed to generate {field} for {entity_type}: {e}"
        if isinstance(e, CounterOverflow):
            message += (
                f"\n\nACTION REQUIRED: The {entity_type} ID counter has reached its "
                f"maximum capacity ({MAX_SEQUENCE:,}). Contact the system "
                "administrator to migrate the ID format or archive the prefix."
            )
        raise EntityIdError(message, entity_type, field) from e


_id_allocator: Optional[IdAllocator] = None


def init_id_allocator(
    session_factory: Optional[Callable[[], Session]] = None,
) -> IdAllocator:
    """
    Initialize the application-wide allocator from settings.

    Should be called once at application startup.
    """
    from labloop.config import settings
    from labloop.database import SessionLocal

    global _id_allocator
    _id_allocator = IdAllocator(
        session_factory or SessionLocal,
        max_retries=settings.ID_ALLOCATION_MAX_RETRIES,
        backoff_seconds=settings.ID_ALLOCATION_BACKOFF_SECONDS,
        allow_reset=settings.counter_reset_enabled,
    )
    return _id_allocator


def get_id_allocator() -> IdAllocator:
    """Get the application-wide allocator, creating it on first use."""
    if _id_allocator is None:
        return init_id_allocator()
    return _id_allocator
