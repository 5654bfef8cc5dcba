from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from hrm.database import get_db
from hrm.core.auth import require_super_admin
from hrm.schemas.directory import (
    PersonUpsert, PersonResponse, ActiveToggle,
    AssignmentCreate, AssignmentCreateResult, AssignmentResponse
)
from hrm.services import directory

router = APIRouter(prefix="/hrm", tags=["directory"])


@router.put("/people", response_model=PersonResponse)
async def upsert_person(
    person_in: PersonUpsert,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await directory.upsert_person(
        db,
        email=person_in.email,
        full_name=person_in.full_name,
        role=person_in.role.value,
        is_active=person_in.is_active,
    )


@router.patch("/people/{person_id}", response_model=PersonResponse)
async def set_person_active(
    person_id: int,
    toggle: ActiveToggle,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await directory.set_person_active(db, person_id, toggle.is_active)


@router.get("/assignments", response_model=List[AssignmentResponse])
async def list_assignments(
    marker_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await directory.list_assignments(db, marker_id=marker_id, subject_id=subject_id, is_active=active)


@router.post("/assignments", response_model=AssignmentCreateResult)
async def create_assignments(
    assignment_in: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    created, skipped = await directory.create_assignments(
        db, assignment_in.marker_id, assignment_in.subject_ids, created_by_id=admin.id
    )
    return AssignmentCreateResult(
        created_count=created,
        skipped_count=skipped,
        total=len(assignment_in.subject_ids),
    )


@router.patch("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def set_assignment_active(
    assignment_id: int,
    toggle: ActiveToggle,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await directory.set_assignment_active(db, assignment_id, toggle.is_active)


@router.delete("/assignments/{assignment_id}", status_code=204)
async def delete_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    await directory.delete_assignment(db, assignment_id)
