from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel
from sessionbook.models.mod_booking import BookingStatus

class CalendarEvent(BaseModel):
    id: str
    type: str = "booking"
    title: str
    start: datetime
    end: datetime
    status: BookingStatus
    color: str
    booking_id: str
    booking_number: Optional[str] = None
    trainer_id: str
    client_id: str
    location: Optional[str] = None
    notes: Optional[str] = None

class CalendarView(BaseModel):
    start_date: date
    end_date: date
    events: List[CalendarEvent]
