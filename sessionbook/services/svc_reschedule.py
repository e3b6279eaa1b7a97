from datetime import date, datetime, time, timezone
from typing import Optional
from fastapi import BackgroundTasks
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_auth import UserRole
from sessionbook.models.mod_booking import Booking, RescheduleEvent
from sessionbook.models.mod_interval import TimeInterval
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.services.svc_availability import AvailabilityService
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.services.svc_notification import NotificationKind, NotificationService
from sessionbook.validators.val_booking import BookingValidator
from sessionbook.validators.val_errors import ConflictError

class RescheduleService:
    @staticmethod
    def reschedule_booking(
        db: CosmosStore,
        booking: Booking,
        new_date: date,
        new_time: time,
        actor_role: UserRole,
        reason: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Booking:
        """
        Move an active booking to a new start.

        The new slot is reserved before the booking document changes and the
        old reservation is released only afterwards, so at no point can a
        third booking take either slot by accident.
        """
        try:
            with start_span("reschedule_booking", attributes={"booking_id": booking.id, "actor_role": actor_role.value}):
                log_event("Reschedule booking started", {
                    "booking_id": booking.id,
                    "new_date": new_date.isoformat(),
                    "new_time": new_time.strftime("%H:%M"),
                })

                BookingValidator.validate_reschedule_booking(booking)
                AvailabilityService.ensure_slot_bookable(
                    db, booking.trainer_id, new_date, new_time, booking.duration_minutes,
                    exclude_booking_id=booking.id,
                )

                old_date, old_time = booking.session_date, booking.session_time
                new_interval = TimeInterval.from_slot(new_date, new_time, booking.duration_minutes)
                old_interval = booking.interval
                same_day = old_date == new_date
                SlotLedgerService.reserve(db, booking.trainer_id, new_date, booking.id, new_interval)

                booking.reschedule_history.append(RescheduleEvent(
                    old_date=old_date,
                    old_time=old_time,
                    new_date=new_date,
                    new_time=new_time,
                    reason=reason,
                    requested_by=actor_role.value,
                    requested_at=datetime.now(timezone.utc),
                ))
                booking.reschedule_count += 1
                booking.session_date = new_date
                booking.session_time = new_time
                try:
                    BookingRepository.save(db, booking)
                except Exception:
                    if same_day:
                        # The reservation was moved in place; point it back at the stored time
                        try:
                            SlotLedgerService.reserve(db, booking.trainer_id, old_date, booking.id, old_interval)
                        except ConflictError as restore_error:
                            log_exception(restore_error, {
                                "operation": "reschedule_restore_reservation",
                                "booking_id": booking.id,
                            })
                    else:
                        SlotLedgerService.release(db, booking.trainer_id, new_date, booking.id)
                    raise

                if not same_day:
                    SlotLedgerService.release(db, booking.trainer_id, old_date, booking.id)

                log_event("Booking rescheduled successfully", {
                    "booking_id": booking.id,
                    "old_date": old_date.isoformat(),
                    "new_date": new_date.isoformat(),
                    "reschedule_count": booking.reschedule_count,
                })

                notify_user = booking.trainer_id if actor_role == UserRole.CLIENT else booking.client_id
                NotificationService.emit(db, background_tasks, notify_user, NotificationKind.BOOKING_RESCHEDULED, {
                    "booking_id": booking.id,
                    "old_date": old_date.isoformat(),
                    "old_time": old_time.strftime("%H:%M"),
                    "new_date": new_date.isoformat(),
                    "new_time": new_time.strftime("%H:%M"),
                    "reason": reason,
                })
                return booking
        except Exception as e:
            log_exception(e, {"operation": "reschedule_booking", "booking_id": booking.id})
            raise
