from datetime import date, time
from typing import Optional
from sessionbook.configuration.config import Config
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_availability import DaySchedule, SlotsResult, TrainerAvailability
from sessionbook.repositories.rep_availability import AvailabilityRepository
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.schemas.sch_availability import AvailabilityUpdate
from sessionbook.services.svc_slots import AvailabilityCalculator
from sessionbook.validators.val_availability import AvailabilityValidator
from sessionbook.validators.val_errors import ConflictError, NotFoundError

class AvailabilityService:
    @staticmethod
    def get_trainer_availability(db: CosmosStore, trainer_id: str) -> TrainerAvailability:
        try:
            with start_span("get_trainer_availability", attributes={"trainer_id": trainer_id}):
                availability = AvailabilityRepository.get(db, trainer_id)
                if availability is None:
                    log_event("Availability not found", {"trainer_id": trainer_id})
                    raise NotFoundError("availability_not_found", "Trainer has no availability configured",
                                        trainer_id=trainer_id)
                return availability
        except NotFoundError:
            raise
        except Exception as e:
            log_exception(e, {"operation": "get_trainer_availability", "trainer_id": trainer_id})
            raise

    @staticmethod
    def update_availability(db: CosmosStore, trainer_id: str, availability: AvailabilityUpdate) -> TrainerAvailability:
        """Replace the weekly schedule; blackout dates are kept unless given"""
        try:
            with start_span("update_availability", attributes={"trainer_id": trainer_id}):
                log_event("Update availability started", {"trainer_id": trainer_id})

                AvailabilityValidator.validate_update_availability(availability)

                existing = AvailabilityRepository.get(db, trainer_id)
                blackout_dates = availability.blackout_dates
                if blackout_dates is None:
                    blackout_dates = existing.blackout_dates if existing else []

                updated = AvailabilityRepository.save(db, TrainerAvailability(
                    trainer_id=trainer_id,
                    schedule=[DaySchedule(**day.model_dump()) for day in availability.schedule],
                    blackout_dates=blackout_dates,
                ))

                log_event("Availability updated successfully", {
                    "trainer_id": trainer_id,
                    "working_days": sum(1 for day in updated.schedule if day.is_available),
                })
                return updated
        except Exception as e:
            log_exception(e, {"operation": "update_availability", "trainer_id": trainer_id})
            raise

    @staticmethod
    def add_blackout_date(db: CosmosStore, trainer_id: str, day: date) -> TrainerAvailability:
        availability = AvailabilityService.get_trainer_availability(db, trainer_id)
        if day not in availability.blackout_dates:
            availability.blackout_dates.append(day)
            availability = AvailabilityRepository.save(db, availability)
            log_event("Blackout date added", {"trainer_id": trainer_id, "date": day.isoformat()})
        return availability

    @staticmethod
    def remove_blackout_date(db: CosmosStore, trainer_id: str, day: date) -> TrainerAvailability:
        availability = AvailabilityService.get_trainer_availability(db, trainer_id)
        if day in availability.blackout_dates:
            availability.blackout_dates.remove(day)
            availability = AvailabilityRepository.save(db, availability)
            log_event("Blackout date removed", {"trainer_id": trainer_id, "date": day.isoformat()})
        return availability

    @staticmethod
    def get_slots(db: CosmosStore, trainer_id: str, day: date, slot_duration_minutes: int = None) -> SlotsResult:
        """Bookable slots for a trainer on one date"""
        slot_duration_minutes = slot_duration_minutes or Config.DEFAULT_SLOT_MINUTES
        try:
            with start_span("get_slots", attributes={"trainer_id": trainer_id, "date": day.isoformat()}):
                AvailabilityValidator.validate_slot_duration(slot_duration_minutes)
                availability = AvailabilityRepository.get(db, trainer_id)
                bookings = BookingRepository.get_trainer_bookings_for_date(db, trainer_id, day)
                result = AvailabilityCalculator.get_slots(
                    availability, bookings, day, slot_duration_minutes, trainer_id=trainer_id
                )
                log_event("Slots computed", {
                    "trainer_id": trainer_id,
                    "date": day.isoformat(),
                    "available": result.available,
                    "free_slots": sum(1 for slot in result.slots if slot.available),
                })
                return result
        except Exception as e:
            log_exception(e, {"operation": "get_slots", "trainer_id": trainer_id, "date": day.isoformat()})
            raise

    @staticmethod
    def is_slot_bookable(
        db: CosmosStore,
        trainer_id: str,
        day: date,
        at: time,
        duration_minutes: int = None,
        exclude_booking_id: Optional[str] = None,
        availability: Optional[TrainerAvailability] = None,
    ) -> bool:
        availability = availability or AvailabilityRepository.get(db, trainer_id)
        bookings = BookingRepository.get_trainer_bookings_for_date(db, trainer_id, day)
        return AvailabilityCalculator.is_bookable(
            availability, bookings, day, at, duration_minutes, exclude_booking_id
        )

    @staticmethod
    def ensure_slot_bookable(
        db: CosmosStore,
        trainer_id: str,
        day: date,
        at: time,
        duration_minutes: int = None,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        if not AvailabilityService.is_slot_bookable(db, trainer_id, day, at, duration_minutes, exclude_booking_id):
            raise ConflictError(
                "trainer_unavailable",
                "The trainer is not available at the requested time",
                date=day.isoformat(),
                time=at.strftime("%H:%M"),
            )
