from uuid import UUID as PyUUID
from sqlalchemy import String, Text, DateTime, Enum as SQLEnum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID as SQLUUID
from sqlalchemy.orm import relationship, Mapped, mapped_column, validates
from datetime import datetime
import uuid
import enum
from labloop.constants.id_prefixes import ID_COLUMN_LENGTH
from labloop.database import Base
from labloop.models.identifiers import check_number, number_constraint


class CasePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CaseStatus(str, enum.Enum):
    PENDING = "pending"
    SAMPLE_COLLECTED = "sample_collected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class Case(Base):
    __tablename__ = "cases"
    __table_args__ = (number_constraint("cases", "Case"),)

    id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    case_number: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), unique=True, nullable=False, index=True
    )
    patient_id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), ForeignKey("patients.id"), nullable=False, index=True
    )
    lab_id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), ForeignKey("labs.id"), nullable=False, index=True
    )
    priority: Mapped[CasePriority] = mapped_column(
        SQLEnum(CasePriority, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=CasePriority.MEDIUM,
    )
    status: Mapped[CaseStatus] = mapped_column(
        SQLEnum(CaseStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=CaseStatus.PENDING,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    # Relationships
    patient = relationship("Patient", back_populates="cases")
    lab = relationship("Lab", back_populates="cases")
    samples = relationship(
        "Sample", back_populates="case", cascade="all, delete-orphan"
    )

    @validates("case_number")
    def validate_case_number(self, key, value):
        return check_number("Case", value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Case {self.case_number} ({self.status.value})>"
