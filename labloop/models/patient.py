from uuid import UUID as PyUUID
from sqlalchemy import String, Date, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID as SQLUUID
from sqlalchemy.orm import relationship, Mapped, mapped_column, validates
from datetime import datetime, date
import uuid
import enum
from labloop.constants.id_prefixes import ID_COLUMN_LENGTH
from labloop.database import Base
from labloop.models.identifiers import check_number, number_constraint


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Patient(Base):
    """
    Patient demographic record.

    The patient_number (PAT00000001) is the identifier printed on
    requisitions and reports; the UUID stays internal.
    """

    __tablename__ = "patients"
    __table_args__ = (number_constraint("patients", "Patient"),)

    id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    patient_number: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[Gender | None] = mapped_column(
        SQLEnum(Gender, values_callable=lambda x: [e.value for e in x]),
        nullable=True,
    )
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    # Relationships
    cases = relationship("Case", back_populates="patient")

    @validates("patient_number")
    def validate_patient_number(self, key, value):
        return check_number("Patient", value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        # Mask name for privacy: Jo***
        if self.name:
            visible = self.name[:2] if len(self.name) >= 2 else self.name[0]
            return f"<Patient {self.patient_number} {visible}***>"
        return f"<Patient {self.patient_number}>"
