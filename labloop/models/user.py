from uuid import UUID as PyUUID
from sqlalchemy import String, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID as SQLUUID
from sqlalchemy.orm import Mapped, mapped_column, validates
from datetime import datetime
import uuid
import enum
from labloop.constants.id_prefixes import ID_COLUMN_LENGTH
from labloop.database import Base
from labloop.models.identifiers import check_number, number_constraint


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    LAB_MANAGER = "lab_manager"
    TECHNICIAN = "technician"
    PATHOLOGIST = "pathologist"
    RECEPTIONIST = "receptionist"
    DOCTOR = "doctor"


class User(Base):
    """Staff accounts. Patients are modelled separately."""

    __tablename__ = "users"
    __table_args__ = (number_constraint("users", "User"),)

    id: Mapped[PyUUID] = mapped_column(
        SQLUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_number: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=UserRole.TECHNICIAN,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )  # Soft delete support
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @validates("user_number")
    def validate_user_number(self, key, value):
        return check_number("User", value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<User {self.user_number}>"
