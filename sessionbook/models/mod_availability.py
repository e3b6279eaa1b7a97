from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime, time

class DaySchedule(BaseModel):
    day_of_week: int                    # 0=Monday .. 6=Sunday
    is_available: bool = True           # False for marking days off
    start_time: time
    end_time: time

class TrainerAvailability(BaseModel):
    id: Optional[str] = None
    trainer_id: str
    schedule: List[DaySchedule] = []
    blackout_dates: List[date] = []
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def day_entry(self, day: date) -> Optional[DaySchedule]:
        """Working hours for the weekday of `day`, or None when the trainer is off."""
        if day in self.blackout_dates:
            return None
        for entry in self.schedule:
            if entry.day_of_week == day.weekday():
                return entry if entry.is_available else None
        return None

class Slot(BaseModel):
    start: datetime
    end: datetime
    time: str                           # HH:MM label
    available: bool

class SlotsResult(BaseModel):
    trainer_id: str
    date: date
    available: bool                     # False: trainer does not work that day
    working_hours: Optional[DaySchedule] = None
    slots: List[Slot] = []
