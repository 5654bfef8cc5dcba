from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional

class MonthResponse(BaseModel):
    id: int
    month_key: str
    start_date: date
    end_date: date
    status: str

    model_config = {"from_attributes": True}

class MonthlyResultResponse(BaseModel):
    id: int
    subject_id: int
    month_id: int
    monthly_score: float
    tier: str
    action_type: str
    base_fine: float
    month_fine_count: int
    final_fine: float
    gift_type: Optional[str]
    gift_amount: float
    weeks_count_used: int
    expected_weeks_count: int
    is_complete_month: bool
    computed_at: datetime

    model_config = {"from_attributes": True}

class MonthComputeResponse(BaseModel):
    month_key: str
    expected_weeks_count: int
    computed_subjects_count: int
    results: List[MonthlyResultResponse]

class GiftAmountUpdate(BaseModel):
    gift_amount: float = Field(..., ge=0, allow_inf_nan=False)

class MonthlyHistoryItem(BaseModel):
    month_key: str
    result: MonthlyResultResponse
