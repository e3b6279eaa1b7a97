from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime, time
from enum import Enum
from sessionbook.configuration.config import Config
from sessionbook.models.mod_interval import TimeInterval, combine

class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

# Statuses that hold a trainer's time slot
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

class RefundStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    ACCEPTED = "accepted"
    FAILED = "failed"

class RescheduleEvent(BaseModel):
    old_date: date
    old_time: time
    new_date: date
    new_time: time
    reason: Optional[str] = None
    requested_by: str
    requested_at: datetime

class SessionRecord(BaseModel):
    session_date: date
    session_time: time
    duration: Optional[int] = None      # minutes actually trained
    exercises: List[dict] = []
    notes: Optional[str] = None
    completed_at: datetime

class CancellationInfo(BaseModel):
    reason: Optional[str] = None
    cancelled_by: str                   # actor role
    cancelled_at: datetime
    refund_amount: float = 0.0
    refund_status: RefundStatus = RefundStatus.NOT_REQUIRED
    refund_reference: Optional[str] = None
    refund_error: Optional[str] = None

class Booking(BaseModel):
    id: Optional[str] = None
    booking_number: Optional[str] = None
    client_id: str
    trainer_id: str
    package_id: str
    session_date: date
    session_time: time
    duration_minutes: int = Field(default_factory=lambda: Config.DEFAULT_SESSION_MINUTES)
    location: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    amount: float = 0.0
    remaining_sessions: int = 0
    package_end_date: Optional[date] = None
    reschedule_count: int = 0
    reschedule_history: List[RescheduleEvent] = []
    session_history: List[SessionRecord] = []
    cancellation: Optional[CancellationInfo] = None
    recurring_group_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Cosmos _etag of the stored copy this object was read from
    etag: Optional[str] = Field(default=None, exclude=True)

    class Config:
        from_attributes = True

    @property
    def session_start(self) -> datetime:
        return combine(self.session_date, self.session_time)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval.from_slot(self.session_date, self.session_time, self.duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
