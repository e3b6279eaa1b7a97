from datetime import date, datetime
from typing import Optional
from fastapi import APIRouter, Depends, Response
from sessionbook.configuration.database import CosmosStore, get_db
from sessionbook.dependencies.dep_auth import get_current_user
from sessionbook.models.mod_auth import AuthUser
from sessionbook.models.mod_calendar import CalendarView
from sessionbook.models.mod_interval import schedule_tz
from sessionbook.services.svc_calendar import CalendarService

router = APIRouter(
    prefix="/calendar",
    tags=["Calendar"],
    responses={404: {"description": "Not found"}},
)

@router.get("/events", response_model=CalendarView)
def get_calendar_events(
    start_date: date,
    end_date: date,
    trainer_id: Optional[str] = None,
    client_id: Optional[str] = None,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Pending and confirmed sessions of the caller between two dates (inclusive).

    - Trainers see the sessions they run, clients the sessions they booked
    - Admins pick the calendar with `trainer_id` or `client_id`
    """
    owner_trainer, owner_client = CalendarService.resolve_owner(current_user, trainer_id, client_id)
    return CalendarService.get_calendar_events(db, start_date, end_date, owner_trainer, owner_client)

@router.get("/export")
def export_calendar(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    trainer_id: Optional[str] = None,
    client_id: Optional[str] = None,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """Download the caller's sessions as an iCalendar (.ics) file; defaults to the current month."""
    owner_trainer, owner_client = CalendarService.resolve_owner(current_user, trainer_id, client_id)
    if start_date is None or end_date is None:
        start_date, end_date = CalendarService.month_range(datetime.now(schedule_tz()).date())
    content = CalendarService.export_ics(db, start_date, end_date, owner_trainer, owner_client)
    return Response(
        content=content,
        media_type="text/calendar",
        headers={
            "Content-Disposition": f'attachment; filename="sessionbook-{start_date}-{end_date}.ics"',
        },
    )
