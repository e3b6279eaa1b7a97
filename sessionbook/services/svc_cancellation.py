from datetime import datetime, timezone
from typing import Optional
from fastapi import BackgroundTasks
from pydantic import BaseModel
from sessionbook.configuration.config import Config
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_auth import UserRole
from sessionbook.models.mod_booking import Booking, BookingStatus, CancellationInfo, RefundStatus
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.services.svc_notification import NotificationKind, NotificationService
from sessionbook.services.svc_payment import PaymentService
from sessionbook.validators.val_booking import BookingValidator

class CancellationResult(BaseModel):
    booking: Booking
    refund_amount: float

class CancellationService:
    @staticmethod
    def refund_rate(actor_role: UserRole, hours_before: float) -> float:
        """
        Share of the booking amount returned to the client.

        Client cancellations are tiered by notice: at least 48h gets
        everything back, 24h up to 48h gets half, less than 24h nothing.
        Cancellations by the trainer (or an admin) always refund in full.
        """
        if actor_role != UserRole.CLIENT:
            return 1.0
        if hours_before >= Config.FULL_REFUND_HOURS:
            return 1.0
        if hours_before >= Config.PARTIAL_REFUND_HOURS:
            return Config.PARTIAL_REFUND_RATE
        return 0.0

    @staticmethod
    def cancel_booking(
        db: CosmosStore,
        booking: Booking,
        actor_role: UserRole,
        reason: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
        kind: NotificationKind = NotificationKind.BOOKING_CANCELLED,
    ) -> CancellationResult:
        try:
            with start_span("cancel_booking", attributes={"booking_id": booking.id, "actor_role": actor_role.value}):
                log_event("Cancel booking started", {"booking_id": booking.id, "actor_role": actor_role.value})

                hours_before = BookingValidator.validate_cancel_booking(booking)
                refund_amount = round(booking.amount * CancellationService.refund_rate(actor_role, hours_before), 2)

                booking.status = BookingStatus.CANCELLED
                booking.cancellation = CancellationInfo(
                    reason=reason,
                    cancelled_by=actor_role.value,
                    cancelled_at=datetime.now(timezone.utc),
                    refund_amount=refund_amount,
                    refund_status=RefundStatus.PENDING if refund_amount > 0 else RefundStatus.NOT_REQUIRED,
                )
                BookingRepository.save(db, booking)
                SlotLedgerService.release(db, booking.trainer_id, booking.session_date, booking.id)

                log_event("Booking cancelled successfully", {
                    "booking_id": booking.id,
                    "client_id": booking.client_id,
                    "trainer_id": booking.trainer_id,
                    "hours_before": round(hours_before, 2),
                    "refund_amount": refund_amount,
                })

                # Collaborators run after the state change has been committed
                if refund_amount > 0:
                    PaymentService.schedule_refund(db, background_tasks, booking.id, refund_amount)
                notify_user = booking.client_id if actor_role != UserRole.CLIENT else booking.trainer_id
                NotificationService.emit(db, background_tasks, notify_user, kind, {
                    "booking_id": booking.id,
                    "cancelled_by": actor_role.value,
                    "reason": reason,
                    "refund_amount": refund_amount,
                })
                return CancellationResult(booking=booking, refund_amount=refund_amount)
        except Exception as e:
            log_exception(e, {"operation": "cancel_booking", "booking_id": booking.id})
            raise

    @staticmethod
    def reject_booking(
        db: CosmosStore,
        booking: Booking,
        reason: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> CancellationResult:
        """Trainer declines a pending booking; the client is refunded in full"""
        BookingValidator.validate_confirm(booking)
        return CancellationService.cancel_booking(
            db, booking, UserRole.TRAINER, reason, background_tasks, kind=NotificationKind.BOOKING_REJECTED
        )
