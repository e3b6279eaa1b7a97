from typing import Optional
import stripe
from fastapi import BackgroundTasks
from sessionbook.configuration.config import Config
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_booking import RefundStatus
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.schemas.sch_payment import RefundRetryResponse

class PaymentService:
    """
    Refund execution against Stripe.

    Refunds run after the cancellation has been committed. The outcome is
    written back to `booking.cancellation.refund_status`; failures stay
    `failed` until `retry_pending_refunds` picks them up again.
    """

    @staticmethod
    def _to_minor_units(amount: float) -> int:
        return int(round(amount * 100))

    @staticmethod
    def refund(db: CosmosStore, booking_id: str, amount: float) -> RefundStatus:
        """Idempotent per booking: Stripe deduplicates on the `refund-{booking_id}` key"""
        with start_span("refund", attributes={"booking_id": booking_id, "amount": amount}):
            booking = BookingRepository.get(db, booking_id)
            if booking is None or booking.cancellation is None:
                log_event("Refund skipped, booking not cancelled", {"booking_id": booking_id})
                return RefundStatus.FAILED
            if booking.cancellation.refund_status == RefundStatus.ACCEPTED:
                return RefundStatus.ACCEPTED

            try:
                if not booking.payment_intent_id:
                    raise ValueError("Booking has no payment reference to refund against")
                stripe.api_key = Config.STRIPE_SECRET_KEY
                refund = stripe.Refund.create(
                    payment_intent=booking.payment_intent_id,
                    amount=PaymentService._to_minor_units(amount),
                    metadata={"booking_id": booking_id},
                    idempotency_key=f"refund-{booking_id}",
                )
                booking.cancellation.refund_status = RefundStatus.ACCEPTED
                booking.cancellation.refund_reference = refund.id
                booking.cancellation.refund_error = None
                log_event("Refund accepted", {"booking_id": booking_id, "refund_id": refund.id, "amount": amount})
            except Exception as e:
                booking.cancellation.refund_status = RefundStatus.FAILED
                booking.cancellation.refund_error = str(e)
                log_exception(e, {"operation": "refund", "booking_id": booking_id, "amount": amount})

            try:
                BookingRepository.save(db, booking)
            except Exception as e:
                log_exception(e, {"operation": "refund_status_update", "booking_id": booking_id})
            return booking.cancellation.refund_status

    @staticmethod
    def schedule_refund(
        db: CosmosStore,
        background_tasks: Optional[BackgroundTasks],
        booking_id: str,
        amount: float,
    ) -> None:
        if background_tasks is not None:
            background_tasks.add_task(PaymentService.refund, db, booking_id, amount)
        else:
            PaymentService.refund(db, booking_id, amount)

    @staticmethod
    def retry_pending_refunds(db: CosmosStore) -> RefundRetryResponse:
        """Re-drive refunds left pending or failed"""
        accepted = 0
        bookings = BookingRepository.get_bookings_with_refund_status(
            db, [RefundStatus.PENDING.value, RefundStatus.FAILED.value]
        )
        for booking in bookings:
            status = PaymentService.refund(db, booking.id, booking.cancellation.refund_amount)
            if status == RefundStatus.ACCEPTED:
                accepted += 1
        log_event("Refund retry pass finished", {"candidates": len(bookings), "accepted": accepted})
        return RefundRetryResponse(candidates=len(bookings), accepted=accepted)
