"""
Repository functions for ID counters.

Every mutation is a single SQL statement so the database serializes
concurrent callers on the counter row.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from labloop.models.counter import IdCounter


def _dialect_insert(db: Session):
    """Return the dialect-specific insert() that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Counter upsert not supported on {dialect}")
    return insert


def get_counter(db: Session, prefix: str) -> Optional[IdCounter]:
    """
    Get the counter row for a prefix.

    Args:
        db: Database session
        prefix: Counter prefix

    Returns:
        IdCounter or None if the prefix was never used
    """
    return db.execute(
        select(IdCounter).where(IdCounter.prefix == prefix)
    ).scalar_one_or_none()


def get_sequence(db: Session, prefix: str) -> Optional[int]:
    """Current sequence for a prefix, or None if the prefix was never used."""
    return db.execute(
        select(IdCounter.sequence).where(IdCounter.prefix == prefix)
    ).scalar_one_or_none()


def list_counters(db: Session) -> List[IdCounter]:
    return list(db.execute(select(IdCounter).order_by(IdCounter.prefix)).scalars())


def ensure_counter(db: Session, prefix: str) -> None:
    """
    Create the counter row at zero unless it already exists.

    Safe under concurrency: a racing insert for the same prefix is ignored.
    """
    insert = _dialect_insert(db)
    stmt = (
        insert(IdCounter)
        .values(prefix=prefix, sequence=0, updated_at=datetime.now())
        .on_conflict_do_nothing(index_elements=["prefix"])
    )
    db.execute(stmt)


def increment_below_ceiling(db: Session, prefix: str, ceiling: int) -> Optional[int]:
    """
    Atomically increment the counter if it is below the ceiling.

    Args:
        db: Database session
        prefix: Counter prefix
        ceiling: Highest value the sequence may reach

    Returns:
        The post-increment sequence, or None when the row is missing or
        already at the ceiling (nothing is modified in that case)
    """
    stmt = (
        update(IdCounter)
        .where(IdCounter.prefix == prefix, IdCounter.sequence < ceiling)
        .values(sequence=IdCounter.sequence + 1, updated_at=datetime.now())
        .returning(IdCounter.sequence)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).scalar_one_or_none()


def set_sequence(db: Session, prefix: str, sequence: int) -> None:
    """Set the counter to an explicit value, creating the row if needed."""
    insert = _dialect_insert(db)
    now = datetime.now()
    stmt = insert(IdCounter).values(prefix=prefix, sequence=sequence, updated_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=["prefix"],
        set_={"sequence": sequence, "updated_at": now},
    )
    db.execute(stmt)
