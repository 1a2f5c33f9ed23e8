from uuid import UUID as PyUUID
from sqlalchemy import String, DateTime, Enum as SQLEnum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID as SQLUUID
from sqlalchemy.orm import relationship, Mapped, mapped_column, validates
from datetime import datetime
import uuid
import enum
from labloop.constants.id_prefixes import ID_COLUMN_LENGTH
from labloop.database import Base
from labloop.models.identifiers import check_number, number_constraint


class SampleType(str, enum.Enum):
    BLOOD = "blood"
    SERUM = "serum"
    URINE = "urine"
    SWAB = "swab"
    TISSUE = "tissue"
    OTHER = "other"


class SampleStatus(str, enum.Enum):
    COLLECTED = "collected"
    IN_TRANSIT = "in_transit"
    RECEIVED = "received"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Sample(Base):
    __tablename__ = "samples"
    __table_args__ = (number_constraint("samples", "Sample"),)

    id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    sample_number: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), unique=True, nullable=False, index=True
    )
    case_id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), ForeignKey("cases.id"), nullable=False, index=True
    )
    sample_type: Mapped[SampleType] = mapped_column(
        SQLEnum(SampleType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    status: Mapped[SampleStatus] = mapped_column(
        SQLEnum(SampleStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=SampleStatus.COLLECTED,
    )
    collected_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    case = relationship("Case", back_populates="samples")

    @validates("sample_number")
    def validate_sample_number(self, key, value):
        return check_number("Sample", value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Sample {self.sample_number} ({self.sample_type.value})>"
