from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sessionbook.configuration.database import CosmosStore, get_db
from sessionbook.dependencies.dep_auth import ensure_trainer_access, get_current_trainer, get_current_user
from sessionbook.models.mod_auth import AuthUser
from sessionbook.models.mod_availability import SlotsResult
from sessionbook.schemas.sch_availability import AvailabilityResponse, AvailabilityUpdate
from sessionbook.services.svc_availability import AvailabilityService

router = APIRouter(
    prefix="/availabilities",
    tags=["Availabilities"],
    responses={404: {"description": "Not found"}},
)

@router.get("/{trainer_id}/slots", response_model=SlotsResult)
def get_available_slots(
    trainer_id: str,
    date: date,
    slot_duration: Optional[int] = Query(None, description="Slot length in minutes"),
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Get the bookable slots of a trainer for one date.

    - Slots tile the day's working hours; a trailing partial slot is dropped
    - A slot is unavailable when it overlaps a pending or confirmed booking
    - Blackout dates and days off return `available: false` with no slots
    """
    return AvailabilityService.get_slots(db, trainer_id, date, slot_duration)

@router.get("/{trainer_id}", response_model=AvailabilityResponse)
def get_availability(
    trainer_id: str,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    return AvailabilityService.get_trainer_availability(db, trainer_id)

@router.put("/{trainer_id}", response_model=AvailabilityResponse)
def update_availability(
    trainer_id: str,
    availability: AvailabilityUpdate,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """
    Replace a trainer's weekly schedule.

    - One entry per weekday (0=Monday .. 6=Sunday)
    - Existing blackout dates are kept unless the body lists them
    - Trainers can only edit their own schedule; admins can edit any
    """
    ensure_trainer_access(current_user, trainer_id)
    return AvailabilityService.update_availability(db, trainer_id, availability)

@router.post("/{trainer_id}/blackouts/{blackout_date}", response_model=AvailabilityResponse)
def add_blackout_date(
    trainer_id: str,
    blackout_date: date,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """Mark a whole date as unavailable. Existing bookings on it are left as they are."""
    ensure_trainer_access(current_user, trainer_id)
    return AvailabilityService.add_blackout_date(db, trainer_id, blackout_date)

@router.delete("/{trainer_id}/blackouts/{blackout_date}", response_model=AvailabilityResponse)
def remove_blackout_date(
    trainer_id: str,
    blackout_date: date,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    ensure_trainer_access(current_user, trainer_id)
    return AvailabilityService.remove_blackout_date(db, trainer_id, blackout_date)
