import uuid
from collections import defaultdict
from datetime import date, timedelta
from typing import List, Optional
from fastapi import BackgroundTasks
from pydantic import BaseModel
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, log_metric, start_span
from sessionbook.models.mod_booking import ACTIVE_STATUSES, Booking
from sessionbook.repositories.rep_availability import AvailabilityRepository
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.schemas.sch_booking import BookingCreate, RecurringBookingCreate
from sessionbook.services.svc_booking import BookingService
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.services.svc_notification import NotificationKind, NotificationService
from sessionbook.services.svc_package import PackageService
from sessionbook.services.svc_slots import AvailabilityCalculator
from sessionbook.validators.val_errors import ConflictError, ValidationError

class RecurringBookingResult(BaseModel):
    recurring_group_id: str
    bookings: List[Booking]

class RecurringBookingService:
    @staticmethod
    def expand_dates(start: date, end: date, days_of_week: List[int]) -> List[date]:
        """Every date in [start, end] whose weekday (0=Monday) is listed"""
        wanted = set(days_of_week)
        dates = []
        day = start
        while day <= end:
            if day.weekday() in wanted:
                dates.append(day)
            day += timedelta(days=1)
        return dates

    @staticmethod
    def _rollback(db: CosmosStore, reserved: List[Booking], written: List[Booking]) -> None:
        for booking in written:
            try:
                BookingRepository.delete(db, booking)
            except Exception as e:
                log_exception(e, {"operation": "recurring_rollback_delete", "booking_id": booking.id})
        for booking in reserved:
            SlotLedgerService.release(db, booking.trainer_id, booking.session_date, booking.id)

    @staticmethod
    def create_recurring_booking(
        db: CosmosStore,
        client_id: str,
        request: RecurringBookingCreate,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> RecurringBookingResult:
        """
        Book the same time on every matching weekday in a date range.

        All or nothing: every date is checked before anything is written,
        and if any reservation or write fails later the ones already made are
        undone. The ConflictError names every date that could not be booked.
        """
        try:
            with start_span("create_recurring_booking", attributes={
                "client_id": client_id,
                "trainer_id": request.trainer_id,
            }):
                log_event("Create recurring booking started", {
                    "client_id": client_id,
                    "trainer_id": request.trainer_id,
                    "start_date": request.start_date.isoformat(),
                    "end_date": request.end_date.isoformat(),
                    "days_of_week": request.days_of_week,
                })

                dates = RecurringBookingService.expand_dates(request.start_date, request.end_date, request.days_of_week)
                if not dates:
                    raise ValidationError(
                        "no_dates",
                        "No dates in the range fall on the requested weekdays",
                    )

                package = PackageService.get_active_package(db, request.package_id)
                availability = AvailabilityRepository.get(db, request.trainer_id)
                existing = BookingRepository.get_trainer_bookings_in_range(
                    db, request.trainer_id, dates[0], dates[-1], ACTIVE_STATUSES
                )
                by_date = defaultdict(list)
                for booking in existing:
                    by_date[booking.session_date].append(booking)

                group_id = str(uuid.uuid4())
                bookings = [
                    BookingService.build_booking(client_id, BookingCreate(
                        trainer_id=request.trainer_id,
                        package_id=request.package_id,
                        session_date=day,
                        session_time=request.session_time,
                        location=request.location,
                        notes=request.notes,
                    ), package, recurring_group_id=group_id)
                    for day in dates
                ]

                unavailable = [
                    booking.session_date
                    for booking in bookings
                    if not AvailabilityCalculator.is_bookable(
                        availability, by_date[booking.session_date], booking.session_date,
                        booking.session_time, booking.duration_minutes,
                    )
                ]
                if unavailable:
                    log_event("Recurring booking rejected", {
                        "trainer_id": request.trainer_id,
                        "unavailable_dates": [d.isoformat() for d in unavailable],
                    })
                    raise ConflictError(
                        "dates_unavailable",
                        "Some of the requested dates are not available",
                        unavailable_dates=unavailable,
                    )

                reserved: List[Booking] = []
                for booking in bookings:
                    try:
                        SlotLedgerService.reserve(
                            db, booking.trainer_id, booking.session_date, booking.id, booking.interval
                        )
                    except ConflictError:
                        RecurringBookingService._rollback(db, reserved, [])
                        raise ConflictError(
                            "dates_unavailable",
                            "Some of the requested dates are not available",
                            unavailable_dates=[booking.session_date],
                        )
                    reserved.append(booking)

                written: List[Booking] = []
                try:
                    for booking in bookings:
                        BookingRepository.create(db, booking)
                        written.append(booking)
                except Exception:
                    RecurringBookingService._rollback(db, reserved, written)
                    raise

                log_event("Recurring booking created successfully", {
                    "recurring_group_id": group_id,
                    "client_id": client_id,
                    "trainer_id": request.trainer_id,
                    "count": len(bookings),
                })
                log_metric("bookings_created", len(bookings), {"trainer_id": request.trainer_id})

                NotificationService.emit(
                    db, background_tasks, request.trainer_id, NotificationKind.RECURRING_BOOKING_CREATED, {
                        "recurring_group_id": group_id,
                        "client_id": client_id,
                        "session_time": request.session_time.strftime("%H:%M"),
                        "dates": [d.isoformat() for d in dates],
                    }
                )
                return RecurringBookingResult(recurring_group_id=group_id, bookings=bookings)
        except Exception as e:
            log_exception(e, {
                "operation": "create_recurring_booking",
                "client_id": client_id,
                "trainer_id": request.trainer_id,
            })
            raise
