"""
Entity Service - Creation and soft deletion of identified records.

Every create_* function allocates the entity's human-facing number before
the record is added to the session. If allocation fails the EntityIdError
propagates and nothing is added.
"""

import logging
from datetime import date, datetime
from typing import Optional, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from labloop.models.case import Case, CasePriority
from labloop.models.lab import Lab
from labloop.models.patient import Gender, Patient
from labloop.models.sample import Sample, SampleType
from labloop.models.user import User, UserRole
from labloop.services.id_allocator import IdAllocator, allocate_entity_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _persist(db: Session, entity: T) -> T:
    db.add(entity)
    db.flush()  # Flush to get ID and write to transaction
    return entity


def create_user(
    db: Session,
    allocator: IdAllocator,
    email: str,
    full_name: str,
    role: UserRole = UserRole.TECHNICIAN,
) -> User:
    """
    Create a staff user with a USR number.

    Args:
        db: Database session
        allocator: ID allocator
        email: Login email (unique)
        full_name: Display name
        role: Staff role

    Returns:
        Created User object
    """
    user_number = allocate_entity_id(allocator, "User")
    user = User(
        user_number=user_number,
        email=email.strip().lower(),
        full_name=full_name,
        role=role,
    )
    logger.info(f"Created user {user_number}")
    return _persist(db, user)


def create_patient(
    db: Session,
    allocator: IdAllocator,
    name: str,
    date_of_birth: Optional[date] = None,
    gender: Optional[Gender] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
) -> Patient:
    """
    Create a patient record with a PAT number.

    Args:
        db: Database session
        allocator: ID allocator
        name: Patient name
        date_of_birth: Optional date of birth
        gender: Optional gender
        phone: Optional phone number
        email: Optional email address

    Returns:
        Created Patient object
    """
    patient_number = allocate_entity_id(allocator, "Patient")
    patient = Patient(
        patient_number=patient_number,
        name=name,
        date_of_birth=date_of_birth,
        gender=gender,
        phone=phone,
        email=email,
    )
    logger.info(f"Created patient {patient_number}")
    return _persist(db, patient)


def create_lab(
    db: Session,
    allocator: IdAllocator,
    name: str,
    license_number: Optional[str] = None,
    city: Optional[str] = None,
) -> Lab:
    lab_number = allocate_entity_id(allocator, "Lab")
    lab = Lab(
        lab_number=lab_number,
        name=name,
        license_number=license_number,
        city=city,
    )
    logger.info(f"Created lab {lab_number}")
    return _persist(db, lab)


def create_case(
    db: Session,
    allocator: IdAllocator,
    patient_id: UUID,
    lab_id: UUID,
    priority: CasePriority = CasePriority.MEDIUM,
    notes: Optional[str] = None,
) -> Case:
    """
    Open a case for a patient at a lab.

    Returns:
        Created Case object with a CASE number and status pending
    """
    case_number = allocate_entity_id(allocator, "Case")
    case = Case(
        case_number=case_number,
        patient_id=patient_id,
        lab_id=lab_id,
        priority=priority,
        notes=notes,
    )
    logger.info(f"Created case {case_number}")
    return _persist(db, case)


def create_sample(
    db: Session,
    allocator: IdAllocator,
    case_id: UUID,
    sample_type: SampleType,
    collected_at: Optional[datetime] = None,
) -> Sample:
    sample_number = allocate_entity_id(allocator, "Sample")
    sample = Sample(
        sample_number=sample_number,
        case_id=case_id,
        sample_type=sample_type,
        collected_at=collected_at or datetime.now(),
    )
    logger.info(f"Created sample {sample_number}")
    return _persist(db, sample)


def soft_delete(db: Session, entity: T) -> T:
    """
    Mark a record as deleted without removing it.

    Numbers of soft-deleted records are never reissued.
    """
    if entity.deleted_at is None:  # type: ignore[attr-defined]
        entity.deleted_at = datetime.now()  # type: ignore[attr-defined]
        db.flush()
    return entity


def restore(db: Session, entity: T) -> T:
    """Undo a soft delete."""
    if entity.deleted_at is not None:  # type: ignore[attr-defined]
        entity.deleted_at = None  # type: ignore[attr-defined]
        db.flush()
    return entity
