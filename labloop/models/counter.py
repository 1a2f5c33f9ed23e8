"""
ID Counter Model
One row per prefix holding the last issued sequence number.
"""

from sqlalchemy import CheckConstraint, Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from labloop.constants.id_prefixes import MAX_SEQUENCE
from labloop.database import Base


class IdCounter(Base):
    """
    Counter for sequential human-facing identifiers.

    Rows are created on first use and only changed through atomic
    conditional increments or an explicit administrative reset.
    """

    __tablename__ = "id_counters"
    __table_args__ = (
        CheckConstraint(
            f"sequence >= 0 AND sequence <= {MAX_SEQUENCE}",
            name="ck_id_counters_sequence_range",
        ),
    )

    prefix: Mapped[str] = mapped_column(String(5), primary_key=True)
    sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    def __repr__(self):
        return f"<IdCounter {self.prefix}: {self.sequence}>"
