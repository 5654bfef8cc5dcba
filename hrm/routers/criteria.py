from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from hrm.database import get_db
from hrm.core.auth import require_marker, require_super_admin
from hrm.schemas.criteria import (
    CriterionCreate, CriterionUpdate, CriterionResponse,
    CriteriaSetReplace, CriteriaSetResponse
)
from hrm.services import criteria

router = APIRouter(prefix="/hrm/criteria", tags=["criteria"])


@router.get("", response_model=List[CriterionResponse])
async def list_criteria(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_marker)
):
    return await criteria.list_criteria(db)


@router.post("", response_model=CriterionResponse, status_code=201)
async def create_criterion(
    criterion_in: CriterionCreate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await criteria.create_criterion(
        db,
        key=criterion_in.key,
        name=criterion_in.name,
        default_scale_max=criterion_in.default_scale_max,
        description=criterion_in.description,
    )


@router.patch("/{criterion_id}", response_model=CriterionResponse)
async def update_criterion(
    criterion_id: int,
    criterion_in: CriterionUpdate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await criteria.update_criterion(db, criterion_id, **criterion_in.model_dump())


@router.delete("/{criterion_id}", status_code=204)
async def delete_criterion(
    criterion_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    await criteria.delete_criterion(db, criterion_id)


@router.get("/sets/{subject_id}", response_model=Optional[CriteriaSetResponse])
async def get_active_criteria_set(
    subject_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_marker)
):
    return await criteria.active_set_for(db, subject_id)


@router.get("/sets/{subject_id}/history", response_model=List[CriteriaSetResponse])
async def get_criteria_set_history(
    subject_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await criteria.criteria_set_history(db, subject_id)


@router.put("/sets/{subject_id}", response_model=CriteriaSetResponse)
async def replace_criteria_set(
    subject_id: int,
    set_in: CriteriaSetReplace,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await criteria.replace_criteria_set(
        db,
        subject_id,
        [item.model_dump() for item in set_in.items],
        created_by_id=admin.id,
    )
