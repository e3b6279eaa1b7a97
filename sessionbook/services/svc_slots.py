from datetime import date, time, timedelta
from typing import Iterable, List, Optional
from sessionbook.configuration.config import Config
from sessionbook.models.mod_availability import Slot, SlotsResult, TrainerAvailability
from sessionbook.models.mod_booking import Booking
from sessionbook.models.mod_interval import TimeInterval, combine, format_hhmm

class AvailabilityCalculator:
    """
    Slot arithmetic over a trainer's weekly schedule and existing bookings.

    Everything here is a pure function of its arguments; callers load the
    availability document and the bookings for the day.
    """

    @staticmethod
    def working_window(availability: Optional[TrainerAvailability], day: date) -> Optional[TimeInterval]:
        """The day's working interval, or None if the trainer does not work that day"""
        if availability is None:
            return None
        entry = availability.day_entry(day)
        if entry is None or entry.end_time <= entry.start_time:
            return None
        return TimeInterval(start=combine(day, entry.start_time), end=combine(day, entry.end_time))

    @staticmethod
    def busy_intervals(bookings: Iterable[Booking], exclude_booking_id: Optional[str] = None) -> List[TimeInterval]:
        return [
            booking.interval
            for booking in bookings
            if booking.is_active and booking.id != exclude_booking_id
        ]

    @staticmethod
    def get_slots(
        availability: Optional[TrainerAvailability],
        bookings: Iterable[Booking],
        day: date,
        slot_duration_minutes: int = None,
        trainer_id: str = None,
    ) -> SlotsResult:
        slot_duration_minutes = slot_duration_minutes or Config.DEFAULT_SLOT_MINUTES
        trainer_id = trainer_id or (availability.trainer_id if availability else "")
        window = AvailabilityCalculator.working_window(availability, day)
        if window is None:
            return SlotsResult(trainer_id=trainer_id, date=day, available=False, slots=[])

        busy = AvailabilityCalculator.busy_intervals(bookings)
        step = timedelta(minutes=slot_duration_minutes)
        slots = []
        current = window.start
        # A trailing partial slot does not fit a session and is dropped
        while current + step <= window.end:
            candidate = TimeInterval(start=current, end=current + step)
            slots.append(Slot(
                start=candidate.start,
                end=candidate.end,
                time=format_hhmm(candidate.start.time()),
                available=not any(candidate.overlaps(interval) for interval in busy),
            ))
            current += step

        return SlotsResult(
            trainer_id=trainer_id,
            date=day,
            available=True,
            working_hours=availability.day_entry(day),
            slots=slots,
        )

    @staticmethod
    def is_bookable(
        availability: Optional[TrainerAvailability],
        bookings: Iterable[Booking],
        day: date,
        at: time,
        duration_minutes: int = None,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """True when [at, at+duration) fits the working window and overlaps no active booking"""
        duration_minutes = duration_minutes or Config.DEFAULT_SESSION_MINUTES
        window = AvailabilityCalculator.working_window(availability, day)
        if window is None:
            return False
        candidate = TimeInterval.from_slot(day, at, duration_minutes)
        if not window.contains(candidate):
            return False
        busy = AvailabilityCalculator.busy_intervals(bookings, exclude_booking_id)
        return not any(candidate.overlaps(interval) for interval in busy)

    @staticmethod
    def available_hours(availability: Optional[TrainerAvailability], start: date, end: date) -> float:
        """Sum of working hours over every day in [start, end]"""
        total = 0.0
        day = start
        while day <= end:
            window = AvailabilityCalculator.working_window(availability, day)
            if window is not None:
                total += window.minutes / 60
            day += timedelta(days=1)
        return total
