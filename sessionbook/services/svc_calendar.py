from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple
from icalendar import Calendar, Event
from sessionbook.configuration.config import Config
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_auth import AuthUser, UserRole
from sessionbook.models.mod_booking import ACTIVE_STATUSES, Booking, BookingStatus
from sessionbook.models.mod_calendar import CalendarEvent, CalendarView
from sessionbook.models.mod_interval import schedule_tz
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.validators.val_errors import ValidationError

EVENT_COLORS = {
    BookingStatus.CONFIRMED: "#4CAF50",
    BookingStatus.PENDING: "#FFC107",
    BookingStatus.CANCELLED: "#F44336",
    BookingStatus.COMPLETED: "#9E9E9E",
}

ICS_STATUS = {
    BookingStatus.PENDING: "TENTATIVE",
    BookingStatus.CONFIRMED: "CONFIRMED",
    BookingStatus.COMPLETED: "CONFIRMED",
    BookingStatus.CANCELLED: "CANCELLED",
}

class CalendarService:
    """
    Calendar views over a trainer's or a client's bookings.

    Exactly one owner is given: a trainer sees the sessions they run, a
    client the sessions they booked. The event view only lists bookings that
    still hold a slot; the iCal export carries every status so that calendar
    apps can strike cancelled sessions.
    """

    @staticmethod
    def resolve_owner(
        current_user: AuthUser,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        if current_user.role == UserRole.TRAINER:
            return current_user.trainer_id, None
        if current_user.role == UserRole.CLIENT:
            return None, current_user.client_id
        if bool(trainer_id) == bool(client_id):
            raise ValidationError("owner_required", "Pass exactly one of trainer_id or client_id")
        return trainer_id, client_id

    @staticmethod
    def month_range(today: date) -> Tuple[date, date]:
        first = today.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        return first, next_month - timedelta(days=1)

    @staticmethod
    def _bookings(
        db: CosmosStore,
        start: date,
        end: date,
        statuses: Iterable[BookingStatus],
        trainer_id: Optional[str],
        client_id: Optional[str],
    ) -> List[Booking]:
        if end < start:
            raise ValidationError("invalid_range", "end_date must not be before start_date")
        if trainer_id:
            bookings = BookingRepository.get_trainer_bookings_in_range(db, trainer_id, start, end, statuses)
        else:
            bookings = BookingRepository.get_client_bookings_in_range(db, client_id, start, end, statuses)
        return sorted(bookings, key=lambda booking: booking.session_start)

    @staticmethod
    def to_event(booking: Booking, as_trainer: bool) -> CalendarEvent:
        interval = booking.interval
        title = f"Session with client {booking.client_id}" if as_trainer else f"Session with trainer {booking.trainer_id}"
        return CalendarEvent(
            id=booking.id,
            title=title,
            start=interval.start,
            end=interval.end,
            status=booking.status,
            color=EVENT_COLORS.get(booking.status, EVENT_COLORS[BookingStatus.PENDING]),
            booking_id=booking.id,
            booking_number=booking.booking_number,
            trainer_id=booking.trainer_id,
            client_id=booking.client_id,
            location=booking.location,
            notes=booking.notes,
        )

    @staticmethod
    def get_calendar_events(
        db: CosmosStore,
        start: date,
        end: date,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> CalendarView:
        try:
            with start_span("get_calendar_events", attributes={"trainer_id": trainer_id or "", "client_id": client_id or ""}):
                bookings = CalendarService._bookings(db, start, end, ACTIVE_STATUSES, trainer_id, client_id)
                events = [CalendarService.to_event(booking, as_trainer=bool(trainer_id)) for booking in bookings]
                return CalendarView(start_date=start, end_date=end, events=events)
        except Exception as e:
            log_exception(e, {"operation": "get_calendar_events", "trainer_id": trainer_id, "client_id": client_id})
            raise

    @staticmethod
    def export_ics(
        db: CosmosStore,
        start: Optional[date] = None,
        end: Optional[date] = None,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> bytes:
        """iCalendar document of the owner's bookings; defaults to the current month"""
        if start is None or end is None:
            start, end = CalendarService.month_range(datetime.now(schedule_tz()).date())
        try:
            with start_span("export_calendar", attributes={"trainer_id": trainer_id or "", "client_id": client_id or ""}):
                bookings = CalendarService._bookings(db, start, end, list(BookingStatus), trainer_id, client_id)

                calendar = Calendar()
                calendar.add("prodid", f"-//{Config.CALENDAR_NAME}//Calendar//EN")
                calendar.add("version", "2.0")
                calendar.add("calscale", "GREGORIAN")
                calendar.add("method", "PUBLISH")
                calendar.add("x-wr-calname", f"{Config.CALENDAR_NAME} Calendar")

                stamp = datetime.now(timezone.utc)
                for booking in bookings:
                    event = CalendarService.to_event(booking, as_trainer=bool(trainer_id))
                    entry = Event()
                    entry.add("uid", f"{booking.id}@sessionbook")
                    entry.add("dtstamp", stamp)
                    entry.add("dtstart", event.start.astimezone(timezone.utc))
                    entry.add("dtend", event.end.astimezone(timezone.utc))
                    entry.add("summary", event.title)
                    entry.add("status", ICS_STATUS[booking.status])
                    entry.add("description", f"Booking: {booking.booking_number or booking.id}\nStatus: {booking.status.value}")
                    if booking.location:
                        entry.add("location", booking.location)
                    if Config.APP_BASE_URL:
                        entry.add("url", f"{Config.APP_BASE_URL.rstrip('/')}/bookings/{booking.id}")
                    calendar.add_component(entry)

                log_event("Calendar exported", {
                    "trainer_id": trainer_id,
                    "client_id": client_id,
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                    "events": len(bookings),
                })
                return calendar.to_ical()
        except Exception as e:
            log_exception(e, {"operation": "export_calendar", "trainer_id": trainer_id, "client_id": client_id})
            raise
