from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime, time
from sessionbook.models.mod_booking import (
    BookingStatus,
    CancellationInfo,
    RescheduleEvent,
    SessionRecord,
)

class BookingCreate(BaseModel):
    trainer_id: str
    package_id: str
    session_date: date = Field(description="Session date (e.g. 2025-03-11)")
    session_time: time = Field(description="Session start time, minute granular (e.g. 09:30)")
    location: Optional[str] = None
    notes: Optional[str] = None
    payment_intent_id: Optional[str] = None

class RecurringBookingCreate(BaseModel):
    trainer_id: str
    package_id: str
    start_date: date
    end_date: date
    days_of_week: List[int] = Field(description="Weekdays to book, 0=Monday .. 6=Sunday")
    session_time: time
    location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('days_of_week')
    @classmethod
    def validate_days_of_week(cls, v):
        if not v:
            raise ValueError('days_of_week must not be empty')
        if any(not (0 <= day <= 6) for day in v):
            raise ValueError('days_of_week must be between 0 and 6')
        return sorted(set(v))

    @model_validator(mode="after")
    def end_date_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must not be before start_date')
        return self

class CancelRequest(BaseModel):
    reason: Optional[str] = None

class RescheduleRequest(BaseModel):
    new_date: date
    new_time: time
    reason: Optional[str] = None

class CompleteSessionRequest(BaseModel):
    notes: Optional[str] = None
    exercises: List[dict] = []
    duration: Optional[int] = Field(default=None, gt=0, description="Minutes actually trained")

class BookingResponse(BaseModel):
    id: str
    booking_number: Optional[str] = None
    client_id: str
    trainer_id: str
    package_id: str
    session_date: date
    session_time: time
    duration_minutes: int
    location: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus
    amount: float
    remaining_sessions: int
    package_end_date: Optional[date] = None
    reschedule_count: int = 0
    reschedule_history: List[RescheduleEvent] = []
    session_history: List[SessionRecord] = []
    cancellation: Optional[CancellationInfo] = None
    recurring_group_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CancelResponse(BaseModel):
    booking: BookingResponse
    refund_amount: float

class RecurringBookingResponse(BaseModel):
    recurring_group_id: str
    bookings: List[BookingResponse]

class BookingPage(BaseModel):
    bookings: List[BookingResponse]
    page: int
    limit: int
    total: int
