from datetime import datetime, timezone
from typing import Optional
from fastapi import BackgroundTasks
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, log_metric, start_span
from sessionbook.models.mod_booking import Booking, BookingStatus, SessionRecord
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.schemas.sch_booking import CompleteSessionRequest
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.services.svc_notification import NotificationKind, NotificationService
from sessionbook.validators.val_booking import BookingValidator

class SessionService:
    @staticmethod
    def _increment_trainer_sessions(db: CosmosStore, trainer_id: str) -> None:
        """Best effort counter on the trainer profile"""
        try:
            db.trainers.patch_item(
                item=trainer_id,
                partition_key=trainer_id,
                patch_operations=[{"op": "incr", "path": "/total_sessions", "value": 1}],
            )
        except Exception as e:
            log_exception(e, {"operation": "increment_trainer_sessions", "trainer_id": trainer_id})

    @staticmethod
    def complete_session(
        db: CosmosStore,
        booking: Booking,
        request: CompleteSessionRequest,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Booking:
        """
        Mark a confirmed session as done.

        Only a confirmed booking whose start has passed can be completed, so
        repeating the call fails validation instead of consuming a second
        session from the package.
        """
        try:
            with start_span("complete_session", attributes={"booking_id": booking.id}):
                BookingValidator.validate_complete(booking)

                now = datetime.now(timezone.utc)
                booking.status = BookingStatus.COMPLETED
                booking.completed_at = now
                booking.session_history.append(SessionRecord(
                    session_date=booking.session_date,
                    session_time=booking.session_time,
                    duration=request.duration,
                    exercises=request.exercises,
                    notes=request.notes,
                    completed_at=now,
                ))
                booking.remaining_sessions = max(0, booking.remaining_sessions - 1)
                BookingRepository.save(db, booking)

                SlotLedgerService.release(db, booking.trainer_id, booking.session_date, booking.id)
                SessionService._increment_trainer_sessions(db, booking.trainer_id)

                log_event("Session completed", {
                    "booking_id": booking.id,
                    "trainer_id": booking.trainer_id,
                    "remaining_sessions": booking.remaining_sessions,
                })
                log_metric("sessions_completed", 1, {"trainer_id": booking.trainer_id})

                NotificationService.emit(db, background_tasks, booking.client_id, NotificationKind.SESSION_COMPLETED, {
                    "booking_id": booking.id,
                    "session_date": booking.session_date.isoformat(),
                    "remaining_sessions": booking.remaining_sessions,
                })
                return booking
        except Exception as e:
            log_exception(e, {"operation": "complete_session", "booking_id": booking.id})
            raise
