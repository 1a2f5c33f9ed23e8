from uuid import UUID as PyUUID
from sqlalchemy import String, DateTime
from sqlalchemy.dialects.postgresql import UUID as SQLUUID
from sqlalchemy.orm import relationship, Mapped, mapped_column, validates
from datetime import datetime
import uuid
from labloop.constants.id_prefixes import ID_COLUMN_LENGTH
from labloop.database import Base
from labloop.models.identifiers import check_number, number_constraint


class Lab(Base):
    """Laboratory tenant. Cases are processed by exactly one lab."""

    __tablename__ = "labs"
    __table_args__ = (number_constraint("labs", "Lab"),)

    id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    lab_number: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    cases = relationship("Case", back_populates="lab")

    @validates("lab_number")
    def validate_lab_number(self, key, value):
        return check_number("Lab", value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Lab {self.lab_number} {self.name}>"
