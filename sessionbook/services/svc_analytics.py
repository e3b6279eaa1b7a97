from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional
from sessionbook.configuration.config import Config
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_exception, start_span
from sessionbook.models.mod_analytics import (
    BusyHour,
    RetentionReport,
    ScheduleSummary,
    StreakReport,
    UtilizationReport,
)
from sessionbook.models.mod_booking import Booking, BookingStatus
from sessionbook.repositories.rep_availability import AvailabilityRepository
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.services.svc_slots import AvailabilityCalculator
from sessionbook.validators.val_errors import ValidationError

# Bookings that count as sessions actually taking place
BOOKED_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)

class AnalyticsService:
    """Read-only reports derived from bookings and availability."""

    @staticmethod
    def _validate_range(start: date, end: date):
        if end < start:
            raise ValidationError("invalid_range", "end_date must not be before start_date")

    @staticmethod
    def session_hours(booking: Booking) -> float:
        """Recorded length of a session: what was trained if known, else what was booked"""
        if booking.status == BookingStatus.COMPLETED:
            for record in reversed(booking.session_history):
                if record.duration:
                    return record.duration / 60
        if booking.duration_minutes:
            return booking.duration_minutes / 60
        return 1.0

    @staticmethod
    def utilization_from(trainer_id: str, availability, bookings: Iterable[Booking], start: date, end: date) -> UtilizationReport:
        available_hours = AvailabilityCalculator.available_hours(availability, start, end)
        booked_hours = sum(AnalyticsService.session_hours(booking) for booking in bookings)
        rate = booked_hours / available_hours if available_hours > 0 else 0.0
        return UtilizationReport(
            trainer_id=trainer_id,
            start_date=start,
            end_date=end,
            available_hours=round(available_hours, 2),
            booked_hours=round(booked_hours, 2),
            rate=round(rate, 4),
        )

    @staticmethod
    def utilization(db: CosmosStore, trainer_id: str, start: date, end: date) -> UtilizationReport:
        AnalyticsService._validate_range(start, end)
        try:
            with start_span("utilization", attributes={"trainer_id": trainer_id}):
                availability = AvailabilityRepository.get(db, trainer_id)
                bookings = BookingRepository.get_trainer_bookings_in_range(db, trainer_id, start, end, BOOKED_STATUSES)
                return AnalyticsService.utilization_from(trainer_id, availability, bookings, start, end)
        except Exception as e:
            log_exception(e, {"operation": "utilization", "trainer_id": trainer_id})
            raise

    @staticmethod
    def streak_from(session_dates: List[date], today: date) -> tuple:
        """
        (current, longest) run lengths over session dates.

        Consecutive sessions at most STREAK_GAP_DAYS apart belong to the same
        run. The most recent run only counts as current while its last
        session is itself within STREAK_GAP_DAYS of today.
        """
        if not session_dates:
            return 0, 0
        dates = sorted(session_dates, reverse=True)
        runs = []
        run = 1
        for newer, older in zip(dates, dates[1:]):
            if (newer - older).days <= Config.STREAK_GAP_DAYS:
                run += 1
            else:
                runs.append(run)
                run = 1
        runs.append(run)

        current = runs[0] if (today - dates[0]).days <= Config.STREAK_GAP_DAYS else 0
        return current, max(runs)

    @staticmethod
    def streak(db: CosmosStore, client_id: str, now: Optional[datetime] = None) -> StreakReport:
        now = now or datetime.now(timezone.utc)
        try:
            with start_span("streak", attributes={"client_id": client_id}):
                bookings = BookingRepository.get_client_bookings(db, client_id, [BookingStatus.COMPLETED])
                current, longest = AnalyticsService.streak_from(
                    [booking.session_date for booking in bookings], now.date()
                )
                return StreakReport(client_id=client_id, current=current, longest=longest)
        except Exception as e:
            log_exception(e, {"operation": "streak", "client_id": client_id})
            raise

    @staticmethod
    def retention(db: CosmosStore, trainer_id: str, start: date, end: date) -> RetentionReport:
        """Clients seen in the previous equal-length period compared with this one"""
        AnalyticsService._validate_range(start, end)
        try:
            with start_span("retention", attributes={"trainer_id": trainer_id}):
                length = (end - start).days + 1
                previous_end = start - timedelta(days=1)
                previous_start = previous_end - timedelta(days=length - 1)

                previous = {
                    booking.client_id for booking in BookingRepository.get_trainer_bookings_in_range(
                        db, trainer_id, previous_start, previous_end, BOOKED_STATUSES
                    )
                }
                current = {
                    booking.client_id for booking in BookingRepository.get_trainer_bookings_in_range(
                        db, trainer_id, start, end, BOOKED_STATUSES
                    )
                }
                retained = previous & current
                rate = round(len(retained) / len(previous) * 100, 2) if previous else 0.0
                return RetentionReport(
                    trainer_id=trainer_id,
                    retained=len(retained),
                    lost=len(previous) - len(retained),
                    new=len(current) - len(retained),
                    rate=rate,
                )
        except Exception as e:
            log_exception(e, {"operation": "retention", "trainer_id": trainer_id})
            raise

    @staticmethod
    def schedule_summary(db: CosmosStore, trainer_id: str, start: date, end: date) -> ScheduleSummary:
        AnalyticsService._validate_range(start, end)
        try:
            with start_span("schedule_summary", attributes={"trainer_id": trainer_id}):
                bookings = BookingRepository.get_trainer_bookings_in_range(
                    db, trainer_id, start, end, list(BookingStatus)
                )
                by_status = Counter(booking.status.value for booking in bookings)
                hours = Counter(booking.session_time.hour for booking in bookings if booking.is_active
                                or booking.status == BookingStatus.COMPLETED)
                busiest = [
                    BusyHour(hour=hour, count=count, time=f"{hour:02d}:00")
                    for hour, count in sorted(hours.items(), key=lambda item: (-item[1], item[0]))[:3]
                ]

                availability = AvailabilityRepository.get(db, trainer_id)
                booked = [booking for booking in bookings if booking.status in BOOKED_STATUSES]
                return ScheduleSummary(
                    trainer_id=trainer_id,
                    start_date=start,
                    end_date=end,
                    total=len(bookings),
                    by_status={status.value: by_status.get(status.value, 0) for status in BookingStatus},
                    busiest_hours=busiest,
                    utilization=AnalyticsService.utilization_from(trainer_id, availability, booked, start, end),
                )
        except Exception as e:
            log_exception(e, {"operation": "schedule_summary", "trainer_id": trainer_id})
            raise
