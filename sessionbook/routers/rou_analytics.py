from datetime import date
from fastapi import APIRouter, Depends
from sessionbook.configuration.database import CosmosStore, get_db
from sessionbook.dependencies.dep_auth import ensure_client_access, ensure_trainer_access, get_current_trainer, get_current_user
from sessionbook.models.mod_analytics import RetentionReport, ScheduleSummary, StreakReport, UtilizationReport
from sessionbook.models.mod_auth import AuthUser
from sessionbook.services.svc_analytics import AnalyticsService

router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
    responses={404: {"description": "Not found"}},
)

@router.get("/trainers/{trainer_id}/utilization", response_model=UtilizationReport)
def get_utilization(
    trainer_id: str,
    start_date: date,
    end_date: date,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """
    Booked hours over working hours for a date range (both inclusive).

    `rate` is a fraction: 0.25 means a quarter of the working time is booked.
    """
    ensure_trainer_access(current_user, trainer_id)
    return AnalyticsService.utilization(db, trainer_id, start_date, end_date)

@router.get("/trainers/{trainer_id}/retention", response_model=RetentionReport)
def get_retention(
    trainer_id: str,
    start_date: date,
    end_date: date,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    """Clients kept from the previous period of the same length."""
    ensure_trainer_access(current_user, trainer_id)
    return AnalyticsService.retention(db, trainer_id, start_date, end_date)

@router.get("/trainers/{trainer_id}/summary", response_model=ScheduleSummary)
def get_schedule_summary(
    trainer_id: str,
    start_date: date,
    end_date: date,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_trainer),
):
    ensure_trainer_access(current_user, trainer_id)
    return AnalyticsService.schedule_summary(db, trainer_id, start_date, end_date)

@router.get("/clients/{client_id}/streak", response_model=StreakReport)
def get_streak(
    client_id: str,
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """Current and longest runs of completed sessions at most two days apart."""
    ensure_client_access(current_user, client_id)
    return AnalyticsService.streak(db, client_id)
