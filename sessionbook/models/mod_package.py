from calendar import monthrange
from datetime import date, timedelta
from enum import Enum
from typing import Optional
from pydantic import BaseModel

class DurationUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"

class Package(BaseModel):
    id: str
    trainer_id: Optional[str] = None
    name: Optional[str] = None
    duration_value: int
    duration_unit: DurationUnit = DurationUnit.WEEKS
    total_sessions: int
    price: float
    is_active: bool = True

    class Config:
        from_attributes = True

    @property
    def duration_weeks(self) -> float:
        if self.duration_unit == DurationUnit.DAYS:
            return self.duration_value / 7
        if self.duration_unit == DurationUnit.MONTHS:
            return self.duration_value * 30 / 7
        return float(self.duration_value)

    def end_date_from(self, start: date) -> date:
        if self.duration_unit == DurationUnit.DAYS:
            return start + timedelta(days=self.duration_value)
        if self.duration_unit == DurationUnit.WEEKS:
            return start + timedelta(weeks=self.duration_value)
        month_index = start.month - 1 + self.duration_value
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        return date(year, month, min(start.day, monthrange(year, month)[1]))
