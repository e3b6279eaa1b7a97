from datetime import date
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sessionbook.configuration.database import CosmosStore, get_db
from sessionbook.dependencies.dep_auth import (
    ensure_booking_participant,
    ensure_booking_trainer,
    get_current_client,
    get_current_trainer,
    get_current_user,
)
from sessionbook.models.mod_auth import AuthUser
from sessionbook.models.mod_booking import BookingStatus
from sessionbook.schemas.sch_booking import (
    BookingCreate,
    BookingPage,
    BookingResponse,
    CancelRequest,
    CancelResponse,
    CompleteSessionRequest,
    RecurringBookingCreate,
    RecurringBookingResponse,
    RescheduleRequest,
)
from sessionbook.services.svc_booking import BookingService
from sessionbook.services.svc_cancellation import CancellationService
from sessionbook.services.svc_recurring import RecurringBookingService
from sessionbook.services.svc_reschedule import RescheduleService
from sessionbook.services.svc_session import SessionService
from sessionbook.validators.val_errors import ValidationError

router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"],
    responses={404: {"description": "Not found"}},
)

@router.post('/', response_model=BookingResponse, status_code=201)
def create_booking(
    booking: BookingCreate,
    background_tasks: BackgroundTasks,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_client),
):
    """
    Book a single session with a trainer.

    - The slot must lie inside the trainer's working hours for that day
    - The slot must not overlap another pending or confirmed booking
    - The booking starts as 'pending' until the trainer confirms it
    """
    return BookingService.create_booking(db, current_user.client_id, booking, background_tasks)

@router.post('/recurring', response_model=RecurringBookingResponse, status_code=201)
def create_recurring_booking(
    request: RecurringBookingCreate,
    background_tasks: BackgroundTasks,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_client),
):
    """
    Book the same time on selected weekdays across a date range.

    Either every date is booked or none is; a 409 lists the dates that
    could not be booked.
    """
    return RecurringBookingService.create_recurring_booking(db, current_user.client_id, request, background_tasks)

@router.get('/', response_model=BookingPage)
def list_bookings(
    status: Optional[BookingStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    List the caller's bookings, newest session first.

    - Clients see their own bookings, trainers the bookings made with them
    - Admins see every booking
    """
    if (start_date is None) != (end_date is None):
        raise ValidationError("invalid_range", "start_date and end_date must be given together")
    if start_date and end_date < start_date:
        raise ValidationError("invalid_range", "end_date must not be before start_date")
    bookings, total = BookingService.list_bookings(db, current_user, status, start_date, end_date, page, limit)
    return BookingPage(bookings=bookings, page=page, limit=limit, total=total)

@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: str,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    booking = BookingService.require_booking(db, booking_id)
    ensure_booking_participant(current_user, booking)
    return booking

@router.post('/{booking_id}/confirm', response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """Trainer accepts a pending booking."""
    booking = BookingService.require_booking(db, booking_id)
    ensure_booking_trainer(current_user, booking)
    return BookingService.confirm_booking(db, booking, background_tasks)

@router.post('/{booking_id}/reject', response_model=CancelResponse)
def reject_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    request: Optional[CancelRequest] = None,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """Trainer declines a pending booking; the client gets a full refund."""
    booking = BookingService.require_booking(db, booking_id)
    ensure_booking_trainer(current_user, booking)
    reason = request.reason if request else None
    result = CancellationService.reject_booking(db, booking, reason, background_tasks)
    return CancelResponse(booking=result.booking, refund_amount=result.refund_amount)

@router.post('/{booking_id}/cancel', response_model=CancelResponse)
def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    request: Optional[CancelRequest] = None,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Cancel a pending or confirmed booking.

    - Clients are refunded 100% with 48h notice, 50% with 24h, nothing below
    - Cancellations by the trainer or an admin are refunded in full
    """
    booking = BookingService.require_booking(db, booking_id)
    ensure_booking_participant(current_user, booking)
    reason = request.reason if request else None
    result = CancellationService.cancel_booking(db, booking, current_user.role, reason, background_tasks)
    return CancelResponse(booking=result.booking, refund_amount=result.refund_amount)

@router.post('/{booking_id}/reschedule', response_model=BookingResponse)
def reschedule_booking(
    booking_id: str,
    request: RescheduleRequest,
    background_tasks: BackgroundTasks,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Move a booking to a new date and time.

    - Only allowed at least 24 hours before the current start
    - The new slot must be free and inside working hours
    """
    booking = BookingService.require_booking(db, booking_id)
    ensure_booking_participant(current_user, booking)
    return RescheduleService.reschedule_booking(
        db, booking, request.new_date, request.new_time, current_user.role, request.reason, background_tasks
    )

@router.post('/{booking_id}/complete', response_model=BookingResponse)
def complete_session(
    booking_id: str,
    background_tasks: BackgroundTasks,
    request: Optional[CompleteSessionRequest] = None,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """Trainer records a confirmed session as done once it has started."""
    booking = BookingService.require_booking(db, booking_id)
    ensure_booking_trainer(current_user, booking)
    return SessionService.complete_session(db, booking, request or CompleteSessionRequest(), background_tasks)
