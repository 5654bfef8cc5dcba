from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class ScoreItemIn(BaseModel):
    criterion_id: int
    score_raw: float = Field(..., allow_inf_nan=False)

class SubmissionCreate(BaseModel):
    week_key: str = Field(..., description="Friday date, YYYY-MM-DD")
    subject_id: int
    items: List[ScoreItemIn]
    comment: Optional[str] = None

class SubmissionItemResponse(BaseModel):
    criterion_id: int
    score_raw: float

    model_config = {"from_attributes": True}

class SubmissionResponse(BaseModel):
    id: int
    week_id: int
    marker_id: int
    subject_id: int
    criteria_set_id: int
    total_score: float
    comment: Optional[str]
    submitted_at: datetime
    items: List[SubmissionItemResponse]

    model_config = {"from_attributes": True}

class WeeklyResultResponse(BaseModel):
    week_id: int
    subject_id: int
    weekly_avg_score: float
    expected_markers_count: int
    submitted_markers_count: int
    is_complete: bool
    computed_at: datetime

    model_config = {"from_attributes": True}

class MarkingListItem(BaseModel):
    subject_id: int
    full_name: Optional[str]
    email: str
    has_criteria_set: bool
    submitted: bool
    total_score: Optional[float] = None
    submitted_at: Optional[datetime] = None

class MarkingListResponse(BaseModel):
    week_key: str
    is_locked: bool
    subjects: List[MarkingListItem]

class WeeklyDetail(BaseModel):
    week_key: str
    label: str
    weekly_result: Optional[WeeklyResultResponse]
    submissions: List[SubmissionResponse]

class ComplianceResponse(BaseModel):
    marker_id: int
    expected_count: int
    submitted_count: int
    missed_count: int
    status: str

    model_config = {"from_attributes": True}

class WeekComputeResponse(BaseModel):
    week_key: str
    subjects_computed: int
    markers_computed: int
