from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import List, Optional
from hrm.models.enums import Role

class PersonUpsert(BaseModel):
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=100)
    role: Role = Role.EMPLOYEE
    is_active: bool = True

class PersonResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    role: str
    is_active: bool

    model_config = {"from_attributes": True}

class ActiveToggle(BaseModel):
    is_active: bool

class AssignmentCreate(BaseModel):
    marker_id: int
    subject_ids: List[int] = Field(..., min_length=1)

class AssignmentCreateResult(BaseModel):
    created_count: int
    skipped_count: int
    total: int

class AssignmentResponse(BaseModel):
    id: int
    marker_id: int
    subject_id: int
    is_active: bool
    created_by_id: Optional[int]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
