from pydantic import BaseModel, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime, time
from sessionbook.models.mod_availability import DaySchedule

class DayScheduleCreate(BaseModel):
    day_of_week: int
    is_available: bool = True
    start_time: time
    end_time: time

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, v):
        if not (0 <= v <= 6):
            raise ValueError('day_of_week must be between 0 and 6')
        return v

    @model_validator(mode="after")
    def end_time_must_be_after_start_time(self):
        if self.is_available and self.end_time <= self.start_time:
            raise ValueError('end_time must be after start_time')
        return self

class AvailabilityUpdate(BaseModel):
    schedule: List[DayScheduleCreate]
    blackout_dates: Optional[List[date]] = None

class AvailabilityResponse(BaseModel):
    id: str
    trainer_id: str
    schedule: List[DaySchedule]
    blackout_dates: List[date]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
