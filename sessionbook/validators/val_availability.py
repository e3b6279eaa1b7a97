from sessionbook.schemas.sch_availability import AvailabilityUpdate
from sessionbook.validators.val_errors import ValidationError

class AvailabilityValidator:
    @staticmethod
    def validate_schedule(schedule):
        """At most one working window per weekday"""
        seen = set()
        for day in schedule:
            if day.day_of_week in seen:
                raise ValidationError(
                    "duplicate_day",
                    f"day_of_week {day.day_of_week} appears more than once",
                )
            seen.add(day.day_of_week)

    @staticmethod
    def validate_slot_duration(slot_duration_minutes: int):
        if slot_duration_minutes <= 0 or slot_duration_minutes > 24 * 60:
            raise ValidationError(
                "invalid_slot_duration",
                "slot_duration must be between 1 and 1440 minutes",
            )

    @staticmethod
    def validate_update_availability(availability: AvailabilityUpdate):
        """Validate all rules for replacing a weekly schedule"""
        AvailabilityValidator.validate_schedule(availability.schedule)
