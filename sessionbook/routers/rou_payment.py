from fastapi import APIRouter, Depends
from sessionbook.configuration.database import CosmosStore, get_db
from sessionbook.dependencies.dep_auth import get_current_admin
from sessionbook.models.mod_auth import AuthUser
from sessionbook.schemas.sch_payment import RefundRetryResponse
from sessionbook.services.svc_payment import PaymentService

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)

@router.post("/refunds/retry", response_model=RefundRetryResponse)
def retry_refunds(
    db: CosmosStore = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
):
    """
    Re-drive refunds of cancelled bookings that are still pending or failed.

    Safe to call repeatedly: accepted refunds are skipped and Stripe
    deduplicates on the per-booking idempotency key.
    """
    return PaymentService.retry_pending_refunds(db)
