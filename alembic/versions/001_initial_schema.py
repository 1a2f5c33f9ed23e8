"""initial_schema

ID counters and the identified core records (users, patients, labs, cases,
samples).

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MAX_SEQUENCE = 99999999
ID_LENGTH = 13


def _number_check(table: str, column: str, prefix: str) -> sa.CheckConstraint:
    # prefix followed by 8 digits
    return sa.CheckConstraint(
        f"{column} LIKE '{prefix}%' AND length({column}) = {len(prefix) + 8}",
        name=f"ck_{table}_{column}_format",
    )


def upgrade() -> None:
    """Upgrade schema - create all tables, indexes, and constraints."""

    # ID counters table (one row per prefix)
    op.create_table(
        "id_counters",
        sa.Column("prefix", sa.String(length=5), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("prefix"),
        sa.CheckConstraint(
            f"sequence >= 0 AND sequence <= {MAX_SEQUENCE}",
            name="ck_id_counters_sequence_range",
        ),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_number", sa.String(length=ID_LENGTH), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.Enum(
                "admin",
                "lab_manager",
                "technician",
                "pathologist",
                "receptionist",
                "doctor",
                name="userrole",
            ),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        _number_check("users", "user_number", "USR"),
    )
    op.create_index("ix_users_user_number", "users", ["user_number"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "patients",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("patient_number", sa.String(length=ID_LENGTH), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column(
            "gender", sa.Enum("male", "female", "other", name="gender"), nullable=True
        ),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        _number_check("patients", "patient_number", "PAT"),
    )
    op.create_index(
        "ix_patients_patient_number", "patients", ["patient_number"], unique=True
    )

    op.create_table(
        "labs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("lab_number", sa.String(length=ID_LENGTH), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("license_number", sa.String(length=50), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        _number_check("labs", "lab_number", "LAB"),
    )
    op.create_index("ix_labs_lab_number", "labs", ["lab_number"], unique=True)

    op.create_table(
        "cases",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("case_number", sa.String(length=ID_LENGTH), nullable=False),
        sa.Column("patient_id", sa.UUID(), nullable=False),
        sa.Column("lab_id", sa.UUID(), nullable=False),
        sa.Column(
            "priority",
            sa.Enum("low", "medium", "high", "urgent", name="casepriority"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "sample_collected",
                "in_progress",
                "completed",
                "cancelled",
                "on_hold",
                name="casestatus",
            ),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["lab_id"], ["labs.id"]),
        sa.PrimaryKeyConstraint("id"),
        _number_check("cases", "case_number", "CASE"),
    )
    op.create_index("ix_cases_case_number", "cases", ["case_number"], unique=True)
    op.create_index("ix_cases_patient_id", "cases", ["patient_id"])
    op.create_index("ix_cases_lab_id", "cases", ["lab_id"])
    op.create_index("ix_cases_status", "cases", ["status"])

    op.create_table(
        "samples",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("sample_number", sa.String(length=ID_LENGTH), nullable=False),
        sa.Column("case_id", sa.UUID(), nullable=False),
        sa.Column(
            "sample_type",
            sa.Enum(
                "blood", "serum", "urine", "swab", "tissue", "other", name="sampletype"
            ),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "collected",
                "in_transit",
                "received",
                "processing",
                "completed",
                "rejected",
                name="samplestatus",
            ),
            nullable=False,
        ),
        sa.Column("collected_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["case_id"], ["cases.id"]),
        sa.PrimaryKeyConstraint("id"),
        _number_check("samples", "sample_number", "SMP"),
    )
    op.create_index(
        "ix_samples_sample_number", "samples", ["sample_number"], unique=True
    )
    op.create_index("ix_samples_case_id", "samples", ["case_id"])


def downgrade() -> None:
    """Downgrade schema - drop all tables."""
    op.drop_table("samples")
    op.drop_table("cases")
    op.drop_table("labs")
    op.drop_table("patients")
    op.drop_table("users")
    op.drop_table("id_counters")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS samplestatus")
    op.execute("DROP TYPE IF EXISTS sampletype")
    op.execute("DROP TYPE IF EXISTS casestatus")
    op.execute("DROP TYPE IF EXISTS casepriority")
    op.execute("DROP TYPE IF EXISTS gender")
    op.execute("DROP TYPE IF EXISTS userrole")
