from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional

class WeekResponse(BaseModel):
    id: int
    week_key: str
    friday_date: date
    status: str
    is_locked: bool  # derived on read, not stored
    label: str
    unlocked_at: Optional[datetime] = None
