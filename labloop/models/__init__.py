from labloop.models.counter import IdCounter
from labloop.models.user import User, UserRole
from labloop.models.patient import Patient, Gender
from labloop.models.lab import Lab
from labloop.models.case import Case, CasePriority, CaseStatus
from labloop.models.sample import Sample, SampleType, SampleStatus

__all__ = [
    "IdCounter",
    "User",
    "UserRole",
    "Patient",
    "Gender",
    "Lab",
    "Case",
    "CasePriority",
    "CaseStatus",
    "Sample",
    "SampleType",
    "SampleStatus",
]
