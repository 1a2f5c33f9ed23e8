"""
ID Prefix Constants

Registry of human-facing identifier prefixes per entity type. Every prefix
owns exactly one counter row; prefixes must never be reused across entities.
"""

import re
from typing import NamedTuple

MAX_SEQUENCE = 99_999_999
SEQUENCE_DIGITS = 8
PREFIX_PATTERN = r"^[A-Z]{2,5}$"


def id_regex(prefix: str) -> "re.Pattern[str]":
    """Pattern a formatted identifier must fully match (prefix + 8 digits)."""
    return re.compile(rf"{re.escape(prefix)}\d{{{SEQUENCE_DIGITS}}}")


class IdPrefix(NamedTuple):
    prefix: str
    field: str


ENTITY_ID_PREFIXES = {
    "User": IdPrefix("USR", "user_number"),
    "Patient": IdPrefix("PAT", "patient_number"),
    "Hospital": IdPrefix("HOS", "hospital_number"),
    "Lab": IdPrefix("LAB", "lab_number"),
    "Clinic": IdPrefix("CLN", "clinic_number"),
    "Doctor": IdPrefix("DOC", "doctor_number"),
    "CollectionCenter": IdPrefix("COL", "center_number"),
    "Organization": IdPrefix("ORG", "organization_number"),
    "Case": IdPrefix("CASE", "case_number"),
    "Sample": IdPrefix("SMP", "sample_number"),
    "Test": IdPrefix("TST", "test_number"),
    "Report": IdPrefix("RPT", "report_number"),
    "Invoice": IdPrefix("INV", "invoice_number"),
    "Appointment": IdPrefix("APT", "appointment_number"),
    "Device": IdPrefix("DEV", "device_number"),
}

# Width of a formatted identifier column (longest prefix + digits)
ID_COLUMN_LENGTH = 5 + SEQUENCE_DIGITS
