import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, timezone

from sessionbook.services.svc_payment import PaymentService
from sessionbook.models.mod_booking import BookingStatus, CancellationInfo, RefundStatus
from sessionbook.repositories.rep_booking import BookingRepository
from booking_fakes import make_booking


def cancelled_booking(**overrides):
    booking = make_booking(id="b1", status=BookingStatus.CANCELLED, **overrides)
    booking.cancellation = CancellationInfo(
        cancelled_by="client",
        cancelled_at=datetime(2025, 3, 10, tzinfo=timezone.utc),
        refund_amount=50.0,
        refund_status=RefundStatus.PENDING,
    )
    return booking


class TestPaymentService:
    @pytest.fixture
    def mock_stripe(self):
        with patch('sessionbook.services.svc_payment.stripe.Refund.create') as mock_create:
            mock_create.return_value = MagicMock(id="re_123")
            yield mock_create

    def test_to_minor_units(self):
        assert PaymentService._to_minor_units(49.99) == 4999
        assert PaymentService._to_minor_units(0.1 + 0.2) == 30

    def test_refund_accepted(self, store, mock_stripe):
        BookingRepository.create(store, cancelled_booking())

        status = PaymentService.refund(store, "b1", 50.0)

        assert status == RefundStatus.ACCEPTED
        mock_stripe.assert_called_once_with(
            payment_intent="pi_123",
            amount=5000,
            metadata={"booking_id": "b1"},
            idempotency_key="refund-b1",
        )
        stored = store.bookings.items["b1"]["cancellation"]
        assert stored["refund_status"] == "accepted"
        assert stored["refund_reference"] == "re_123"

    def test_refund_failure_is_recorded(self, store, mock_stripe):
        BookingRepository.create(store, cancelled_booking())
        mock_stripe.side_effect = Exception("card_declined")

        status = PaymentService.refund(store, "b1", 50.0)

        assert status == RefundStatus.FAILED
        stored = store.bookings.items["b1"]["cancellation"]
        assert stored["refund_status"] == "failed"
        assert stored["refund_error"] == "card_declined"

    def test_refund_without_payment_reference(self, store, mock_stripe):
        BookingRepository.create(store, cancelled_booking(payment_intent_id=None))

        assert PaymentService.refund(store, "b1", 50.0) == RefundStatus.FAILED
        mock_stripe.assert_not_called()

    def test_refund_already_accepted_is_not_repeated(self, store, mock_stripe):
        booking = cancelled_booking()
        booking.cancellation.refund_status = RefundStatus.ACCEPTED
        BookingRepository.create(store, booking)

        assert PaymentService.refund(store, "b1", 50.0) == RefundStatus.ACCEPTED
        mock_stripe.assert_not_called()

    def test_refund_for_unknown_booking(self, store, mock_stripe):
        assert PaymentService.refund(store, "missing", 50.0) == RefundStatus.FAILED

    def test_schedule_refund_uses_background_tasks(self, store):
        background_tasks = MagicMock()

        PaymentService.schedule_refund(store, background_tasks, "b1", 50.0)

        background_tasks.add_task.assert_called_once_with(PaymentService.refund, store, "b1", 50.0)

    @patch.object(PaymentService, 'refund')
    @patch.object(BookingRepository, 'get_bookings_with_refund_status')
    def test_retry_pending_refunds(self, mock_pending, mock_refund, store):
        mock_pending.return_value = [cancelled_booking(), cancelled_booking()]
        mock_refund.side_effect = [RefundStatus.ACCEPTED, RefundStatus.FAILED]

        result = PaymentService.retry_pending_refunds(store)

        assert result.candidates == 2
        assert result.accepted == 1
        mock_pending.assert_called_once_with(store, ["pending", "failed"])
