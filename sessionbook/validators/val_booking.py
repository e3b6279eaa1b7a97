from datetime import datetime, timezone
from sessionbook.configuration.config import Config
from sessionbook.models.mod_booking import ACTIVE_STATUSES, Booking, BookingStatus
from sessionbook.validators.val_errors import PolicyViolationError, ValidationError

class BookingValidator:
    @staticmethod
    def _get_current_time():
        """Get current time as UTC timezone-aware datetime"""
        return datetime.now(timezone.utc)

    @staticmethod
    def hours_before(booking: Booking, now: datetime = None) -> float:
        """Hours from now until the session starts; negative once it has started."""
        current_time = now or BookingValidator._get_current_time()
        return (booking.session_start - current_time).total_seconds() / 3600

    @staticmethod
    def validate_active(booking: Booking, action: str):
        """Only pending or confirmed bookings can be cancelled or rescheduled"""
        if booking.status not in ACTIVE_STATUSES:
            raise PolicyViolationError(
                "invalid_status",
                f"A {booking.status.value} booking cannot be {action}",
                status=booking.status.value,
            )

    @staticmethod
    def validate_reschedule_window(booking: Booking) -> float:
        """Validate that a booking can be moved (24h before)"""
        hours_before = BookingValidator.hours_before(booking)
        if hours_before < Config.RESCHEDULE_NOTICE_HOURS:
            raise PolicyViolationError(
                "notice_window",
                f"Bookings can only be rescheduled at least {Config.RESCHEDULE_NOTICE_HOURS} hours in advance",
                hours_before=hours_before,
            )
        return hours_before

    @staticmethod
    def validate_reschedule_limit(booking: Booking):
        if Config.MAX_RESCHEDULES > 0 and booking.reschedule_count >= Config.MAX_RESCHEDULES:
            raise PolicyViolationError(
                "reschedule_limit_reached",
                f"A booking can be rescheduled at most {Config.MAX_RESCHEDULES} times",
                reschedule_count=booking.reschedule_count,
            )

    @staticmethod
    def validate_confirm(booking: Booking):
        if booking.status != BookingStatus.PENDING:
            raise ValidationError(
                "invalid_status",
                "Only pending bookings can be confirmed or rejected",
                status=booking.status.value,
            )

    @staticmethod
    def validate_complete(booking: Booking):
        """A session is completed once, after it has started"""
        if booking.status != BookingStatus.CONFIRMED:
            raise ValidationError(
                "invalid_status",
                "Only confirmed bookings can be completed",
                status=booking.status.value,
            )
        if booking.session_start > BookingValidator._get_current_time():
            raise ValidationError(
                "session_not_started",
                "Future sessions cannot be completed",
            )

    @staticmethod
    def validate_cancel_booking(booking: Booking) -> float:
        """Validate all rules for canceling a booking"""
        BookingValidator.validate_active(booking, "cancelled")
        return BookingValidator.hours_before(booking)

    @staticmethod
    def validate_reschedule_booking(booking: Booking) -> float:
        """Validate all rules for rescheduling a booking"""
        BookingValidator.validate_active(booking, "rescheduled")
        hours_before = BookingValidator.validate_reschedule_window(booking)
        BookingValidator.validate_reschedule_limit(booking)
        return hours_before
