import pytest
from unittest.mock import MagicMock
from datetime import timedelta

from sessionbook.services.svc_session import SessionService
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.schemas.sch_booking import CompleteSessionRequest
from sessionbook.models.mod_booking import BookingStatus
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.validators.val_errors import ValidationError
from booking_fakes import NOW, make_booking


class TestSessionService:
    def started(self, store, **overrides):
        start = NOW - timedelta(hours=1)
        booking = make_booking(session_date=start.date(), session_time=start.time(), **overrides)
        BookingRepository.create(store, booking)
        SlotLedgerService.reserve(store, booking.trainer_id, booking.session_date, booking.id, booking.interval)
        return booking

    def test_complete_session(self, store, frozen_now):
        booking = self.started(store)
        request = CompleteSessionRequest(notes="Good form", exercises=[{"name": "Squat", "sets": 3}], duration=55)

        result = SessionService.complete_session(store, booking, request)

        assert result.status == BookingStatus.COMPLETED
        assert result.remaining_sessions == 9
        assert result.completed_at is not None
        record = result.session_history[0]
        assert record.duration == 55
        assert record.exercises == [{"name": "Squat", "sets": 3}]
        assert store.bookings.items[booking.id]["status"] == "completed"
        assert store.ledgers.items[f"trainer-1:{booking.session_date.isoformat()}"]["reservations"] == []

    def test_complete_session_increments_trainer_counter(self, store, frozen_now):
        booking = self.started(store)

        SessionService.complete_session(store, booking, CompleteSessionRequest())

        store.trainers.patch_item.assert_called_once_with(
            item="trainer-1",
            partition_key="trainer-1",
            patch_operations=[{"op": "incr", "path": "/total_sessions", "value": 1}],
        )

    def test_counter_failure_does_not_fail_completion(self, store, frozen_now):
        booking = self.started(store)
        store.trainers.patch_item.side_effect = RuntimeError("no trainer profile")

        result = SessionService.complete_session(store, booking, CompleteSessionRequest())

        assert result.status == BookingStatus.COMPLETED

    def test_completing_twice_fails(self, store, frozen_now):
        booking = self.started(store)
        SessionService.complete_session(store, booking, CompleteSessionRequest())

        with pytest.raises(ValidationError) as exc_info:
            SessionService.complete_session(store, booking, CompleteSessionRequest())

        assert exc_info.value.detail["reason"] == "invalid_status"
        assert booking.remaining_sessions == 9
        assert len(booking.session_history) == 1

    def test_remaining_sessions_never_negative(self, store, frozen_now):
        booking = self.started(store, remaining_sessions=0)

        result = SessionService.complete_session(store, booking, CompleteSessionRequest())

        assert result.remaining_sessions == 0

    def test_future_session_cannot_be_completed(self, store, frozen_now):
        start = NOW + timedelta(hours=2)
        booking = make_booking(session_date=start.date(), session_time=start.time())

        with pytest.raises(ValidationError) as exc_info:
            SessionService.complete_session(store, booking, CompleteSessionRequest())

        assert exc_info.value.detail["reason"] == "session_not_started"

    def test_pending_session_cannot_be_completed(self, store, frozen_now):
        booking = self.started(store, status=BookingStatus.PENDING)

        with pytest.raises(ValidationError):
            SessionService.complete_session(store, booking, CompleteSessionRequest())

    def test_completion_notifies_client(self, store, frozen_now):
        booking = self.started(store)
        background_tasks = MagicMock()

        SessionService.complete_session(store, booking, CompleteSessionRequest(), background_tasks)

        args = background_tasks.add_task.call_args.args
        assert args[2] == "client-1"
        assert args[3].value == "session_completed"
