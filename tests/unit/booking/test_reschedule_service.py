import pytest
from unittest.mock import patch
from datetime import date, time, timedelta

from sessionbook.configuration.config import Config
from sessionbook.services.svc_reschedule import RescheduleService
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.models.mod_auth import UserRole
from sessionbook.models.mod_booking import BookingStatus
from sessionbook.repositories.rep_availability import AvailabilityRepository
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.validators.val_errors import ConflictError, PolicyViolationError
from booking_fakes import NOW, make_booking

THURSDAY = date(2025, 3, 13)
FRIDAY = date(2025, 3, 14)


class TestRescheduleService:
    @pytest.fixture(autouse=True)
    def setup_store(self, store, availability, frozen_now):
        AvailabilityRepository.save(store, availability)
        with patch.object(BookingRepository, 'get_trainer_bookings_for_date', return_value=[]) as mock_day:
            self.mock_day = mock_day
            yield

    def existing(self, store, delta=timedelta(days=3), **overrides):
        start = NOW + delta
        booking = make_booking(session_date=start.date(), session_time=start.time(), **overrides)
        BookingRepository.create(store, booking)
        SlotLedgerService.reserve(store, booking.trainer_id, booking.session_date, booking.id, booking.interval)
        return booking

    def test_reschedule_moves_booking_and_ledger(self, store):
        booking = self.existing(store)
        old_date = booking.session_date

        result = RescheduleService.reschedule_booking(store, booking, FRIDAY, time(14, 0), UserRole.CLIENT, "Travel")

        assert result.session_date == FRIDAY
        assert result.session_time == time(14, 0)
        assert result.reschedule_count == 1
        event = result.reschedule_history[0]
        assert event.old_date == old_date
        assert event.new_time == time(14, 0)
        assert event.requested_by == "client"
        assert store.bookings.items[booking.id]["session_date"] == "2025-03-14"
        assert store.ledgers.items[f"trainer-1:{old_date.isoformat()}"]["reservations"] == []
        moved = store.ledgers.items["trainer-1:2025-03-14"]["reservations"]
        assert [r["booking_id"] for r in moved] == [booking.id]

    def test_reschedule_exactly_24_hours_before(self, store):
        booking = self.existing(store, delta=timedelta(hours=24))

        result = RescheduleService.reschedule_booking(store, booking, FRIDAY, time(10, 0), UserRole.CLIENT)

        assert result.reschedule_count == 1

    def test_reschedule_23_hours_before_is_rejected(self, store):
        booking = self.existing(store, delta=timedelta(hours=23))

        with pytest.raises(PolicyViolationError) as exc_info:
            RescheduleService.reschedule_booking(store, booking, FRIDAY, time(10, 0), UserRole.CLIENT)

        assert exc_info.value.detail["reason"] == "notice_window"
        assert exc_info.value.detail["hours_before"] == 23.0
        assert store.bookings.items[booking.id]["reschedule_count"] == 0

    def test_reschedule_limit(self, store):
        booking = self.existing(store, reschedule_count=Config.MAX_RESCHEDULES)

        with pytest.raises(PolicyViolationError) as exc_info:
            RescheduleService.reschedule_booking(store, booking, FRIDAY, time(10, 0), UserRole.CLIENT)

        assert exc_info.value.detail["reason"] == "reschedule_limit_reached"

    def test_reschedule_limit_disabled(self, store):
        booking = self.existing(store, reschedule_count=10)

        with patch.object(Config, 'MAX_RESCHEDULES', 0):
            result = RescheduleService.reschedule_booking(store, booking, FRIDAY, time(10, 0), UserRole.CLIENT)

        assert result.reschedule_count == 11

    def test_reschedule_cancelled_booking(self, store):
        booking = self.existing(store, status=BookingStatus.CANCELLED)

        with pytest.raises(PolicyViolationError) as exc_info:
            RescheduleService.reschedule_booking(store, booking, FRIDAY, time(10, 0), UserRole.CLIENT)

        assert exc_info.value.detail["reason"] == "invalid_status"

    def test_reschedule_into_taken_slot(self, store):
        booking = self.existing(store)
        self.mock_day.return_value = [make_booking(session_date=FRIDAY, session_time=time(14, 0))]

        with pytest.raises(ConflictError):
            RescheduleService.reschedule_booking(store, booking, FRIDAY, time(14, 30), UserRole.CLIENT)

        assert store.bookings.items[booking.id]["session_date"] == booking.session_date.isoformat()
        assert "trainer-1:2025-03-14" not in store.ledgers.items

    def test_reschedule_outside_working_hours(self, store):
        booking = self.existing(store)

        with pytest.raises(ConflictError):
            RescheduleService.reschedule_booking(store, booking, date(2025, 3, 15), time(10, 0), UserRole.CLIENT)

    def test_reschedule_within_same_day_overlapping_itself(self, store):
        booking = self.existing(store)

        result = RescheduleService.reschedule_booking(
            store, booking, booking.session_date, time(9, 30), UserRole.TRAINER
        )

        reservations = store.ledgers.items[f"trainer-1:{booking.session_date.isoformat()}"]["reservations"]
        assert len(reservations) == 1
        assert reservations[0]["start"].endswith("09:30:00+00:00")
        body = store.notifications.create_item.call_args.kwargs["body"]
        assert body["user_id"] == "client-1"
        assert result.session_time == time(9, 30)

    def test_failed_save_releases_new_reservation(self, store):
        booking = self.existing(store)
        old_ledger = f"trainer-1:{booking.session_date.isoformat()}"

        with patch.object(BookingRepository, 'save', side_effect=RuntimeError("write failed")):
            with pytest.raises(RuntimeError):
                RescheduleService.reschedule_booking(store, booking, FRIDAY, time(14, 0), UserRole.CLIENT)

        assert store.ledgers.items["trainer-1:2025-03-14"]["reservations"] == []
        assert [r["booking_id"] for r in store.ledgers.items[old_ledger]["reservations"]] == [booking.id]

    def test_failed_same_day_save_restores_old_reservation(self, store):
        booking = self.existing(store)
        day = booking.session_date
        ledger_id = f"trainer-1:{day.isoformat()}"

        with patch.object(BookingRepository, 'save', side_effect=RuntimeError("write failed")):
            with pytest.raises(RuntimeError):
                RescheduleService.reschedule_booking(store, booking, day, time(14, 0), UserRole.CLIENT)

        reservations = store.ledgers.items[ledger_id]["reservations"]
        assert [r["booking_id"] for r in reservations] == [booking.id]
        assert reservations[0]["start"].endswith("09:00:00+00:00")
        intruder = make_booking(session_date=day, session_time=time(9, 0))
        with pytest.raises(ConflictError):
            SlotLedgerService.reserve(store, "trainer-1", day, intruder.id, intruder.interval)

    def test_stale_copy_is_rejected_and_new_slot_released(self, store):
        booking = self.existing(store)
        stale = BookingRepository.get(store, booking.id)
        BookingRepository.save(store, booking)

        with pytest.raises(ConflictError) as exc_info:
            RescheduleService.reschedule_booking(store, stale, FRIDAY, time(14, 0), UserRole.CLIENT)

        assert exc_info.value.detail["reason"] == "booking_modified"
        assert store.ledgers.items["trainer-1:2025-03-14"]["reservations"] == []
        assert store.bookings.items[booking.id]["session_date"] == booking.session_date.isoformat()
