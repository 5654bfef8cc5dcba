from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class CriterionCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    default_scale_max: Optional[int] = None
    description: Optional[str] = None

class CriterionUpdate(BaseModel):
    key: Optional[str] = Field(None, min_length=1, max_length=64)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    default_scale_max: Optional[int] = None
    description: Optional[str] = None

class CriterionResponse(BaseModel):
    id: int
    key: str
    name: str
    default_scale_max: int
    description: Optional[str]

    model_config = {"from_attributes": True}

class CriteriaSetItemIn(BaseModel):
    criterion_id: int
    weight: int
    scale_max: Optional[int] = None

class CriteriaSetReplace(BaseModel):
    items: List[CriteriaSetItemIn]

class CriteriaSetItemResponse(BaseModel):
    id: int
    criterion_id: int
    weight: int
    scale_max: int
    criterion: CriterionResponse

    model_config = {"from_attributes": True}

class CriteriaSetResponse(BaseModel):
    id: int
    subject_id: int
    version: int
    active_from: datetime
    active_to: Optional[datetime]
    items: List[CriteriaSetItemResponse]

    model_config = {"from_attributes": True}
