# hrm/services/directory.py
"""Marker/subject assignments and the people they point at."""
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.core.errors import Conflict, InvalidInput, NotFound
from hrm.database import is_unique_violation
from hrm.models.assignment import Assignment
from hrm.models.enums import Role
from hrm.models.person import Person
from hrm.models.submission import Submission

logger = logging.getLogger(__name__)


async def get_person(db: AsyncSession, person_id: int) -> Person:
    person = await db.get(Person, person_id)
    if person is None:
        raise NotFound(f"Person {person_id} not found")
    return person


async def upsert_person(
    db: AsyncSession,
    email: str,
    full_name: Optional[str] = None,
    role: str = Role.EMPLOYEE.value,
    is_active: bool = True,
) -> Person:
    """Mirror a person from the external directory, keyed by email."""
    if role not in {r.value for r in Role}:
        raise InvalidInput(f"Invalid role {role}")
    result = await db.execute(select(Person).where(Person.email == email))
    person = result.scalar_one_or_none()
    if person is None:
        person = Person(email=email)
        db.add(person)
    person.full_name = full_name
    person.role = role
    person.is_active = is_active
    await db.commit()
    await db.refresh(person)
    return person


async def set_person_active(db: AsyncSession, person_id: int, is_active: bool) -> Person:
    person = await get_person(db, person_id)
    person.is_active = is_active
    await db.commit()
    await db.refresh(person)
    logger.info("Person %s active=%s", person_id, is_active)
    return person


async def create_assignments(
    db: AsyncSession,
    marker_id: int,
    subject_ids: Sequence[int],
    created_by_id: Optional[int] = None,
) -> Tuple[int, int]:
    """Assign subjects to a marker. Existing pairs are skipped. Returns (created, skipped)."""
    if not subject_ids:
        raise InvalidInput("At least one subject is required")
    marker = await get_person(db, marker_id)
    if marker.role not in (Role.ADMIN, Role.SUPER_ADMIN):
        raise InvalidInput(f"Person {marker_id} cannot mark (role {marker.role})")

    created, skipped = 0, 0
    for subject_id in subject_ids:
        if subject_id == marker_id:
            raise InvalidInput("A marker cannot be assigned to themselves")
        await get_person(db, subject_id)
        existing = await db.execute(
            select(Assignment.id)
            .where(Assignment.marker_id == marker_id)
            .where(Assignment.subject_id == subject_id)
        )
        if existing.scalar_one_or_none() is not None:
            skipped += 1
            continue
        db.add(Assignment(
            marker_id=marker_id,
            subject_id=subject_id,
            is_active=True,
            created_by_id=created_by_id,
        ))
        try:
            await db.commit()
            created += 1
        except IntegrityError as e:
            await db.rollback()
            if not is_unique_violation(e, "uq_assignment_marker_subject", "hrm_assignments."):
                raise
            skipped += 1

    logger.info("Assignments for marker %s: %s created, %s skipped", marker_id, created, skipped)
    return created, skipped


async def get_assignment(db: AsyncSession, assignment_id: int) -> Assignment:
    assignment = await db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFound(f"Assignment {assignment_id} not found")
    return assignment


async def set_assignment_active(db: AsyncSession, assignment_id: int, is_active: bool) -> Assignment:
    assignment = await get_assignment(db, assignment_id)
    assignment.is_active = is_active
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def delete_assignment(db: AsyncSession, assignment_id: int) -> None:
    assignment = await get_assignment(db, assignment_id)
    used = await db.execute(
        select(func.count(Submission.id))
        .where(Submission.marker_id == assignment.marker_id)
        .where(Submission.subject_id == assignment.subject_id)
    )
    if used.scalar_one():
        raise Conflict("Assignment is referenced by submissions; deactivate it instead")
    await db.delete(assignment)
    await db.commit()


async def list_assignments(
    db: AsyncSession,
    marker_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    is_active: Optional[bool] = None,
) -> List[Assignment]:
    query = select(Assignment).order_by(Assignment.id)
    if marker_id is not None:
        query = query.where(Assignment.marker_id == marker_id)
    if subject_id is not None:
        query = query.where(Assignment.subject_id == subject_id)
    if is_active is not None:
        query = query.where(Assignment.is_active == is_active)
    result = await db.execute(query)
    return list(result.scalars().all())


async def is_assignment_active(db: AsyncSession, marker_id: int, subject_id: int) -> bool:
    result = await db.execute(
        select(Assignment.id)
        .join(Person, Person.id == Assignment.marker_id)
        .where(Assignment.marker_id == marker_id)
        .where(Assignment.subject_id == subject_id)
        .where(Assignment.is_active.is_(True))
        .where(Person.is_active.is_(True))
    )
    return result.scalar_one_or_none() is not None


async def active_markers_for_subject(db: AsyncSession, subject_id: int) -> List[int]:
    result = await db.execute(
        select(Assignment.marker_id)
        .join(Person, Person.id == Assignment.marker_id)
        .where(Assignment.subject_id == subject_id)
        .where(Assignment.is_active.is_(True))
        .where(Person.is_active.is_(True))
        .order_by(Assignment.marker_id)
    )
    return list(result.scalars().all())


async def active_assignment_pairs(db: AsyncSession) -> List[Tuple[int, int]]:
    """(marker_id, subject_id) for every active assignment with an active marker."""
    result = await db.execute(
        select(Assignment.marker_id, Assignment.subject_id)
        .join(Person, Person.id == Assignment.marker_id)
        .where(Assignment.is_active.is_(True))
        .where(Person.is_active.is_(True))
    )
    return [(row.marker_id, row.subject_id) for row in result.all()]
