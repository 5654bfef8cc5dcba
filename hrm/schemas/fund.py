from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class FundTransition(BaseModel):
    status: str
    actual_amount: Optional[float] = Field(None, allow_inf_nan=False)
    note: Optional[str] = None

class FundEntryResponse(BaseModel):
    id: int
    monthly_result_id: int
    month_id: int
    subject_id: int
    entry_type: str
    status: str
    expected_amount: float
    actual_amount: Optional[float]
    note: Optional[str]
    marked_by_id: Optional[int]
    marked_at: Optional[datetime]

    model_config = {"from_attributes": True}

class FundSummary(BaseModel):
    fine_collected: float
    bonus_paid: float
    due_fine: float
    due_bonus: float
    current_balance: float

class FundListResponse(BaseModel):
    entries: List[FundEntryResponse]
    summary: FundSummary
