import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from fastapi import FastAPI

from sessionbook.routers.rou_payment import router
from sessionbook.configuration.database import get_db
from sessionbook.dependencies.dep_auth import get_current_user
from sessionbook.models.mod_auth import AuthUser, UserRole
from sessionbook.schemas.sch_payment import RefundRetryResponse
from sessionbook.services.svc_payment import PaymentService

app = FastAPI()
app.include_router(router)

ADMIN = AuthUser(id="user-5", role=UserRole.ADMIN)
TRAINER = AuthUser(id="user-2", role=UserRole.TRAINER, trainer_id="trainer-1")

mock_db = MagicMock()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = lambda: mock_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_retry_refunds_as_admin(client):
    app.dependency_overrides[get_current_user] = lambda: ADMIN
    result = RefundRetryResponse(candidates=3, accepted=2)
    with patch.object(PaymentService, 'retry_pending_refunds', return_value=result) as mock_retry:
        response = client.post("/payments/refunds/retry")

    assert response.status_code == 200
    assert response.json() == {"candidates": 3, "accepted": 2}
    mock_retry.assert_called_once_with(mock_db)


def test_retry_refunds_requires_admin(client):
    app.dependency_overrides[get_current_user] = lambda: TRAINER
    with patch.object(PaymentService, 'retry_pending_refunds') as mock_retry:
        response = client.post("/payments/refunds/retry")

    assert response.status_code == 403
    assert response.json()["detail"]["reason"] == "admin_required"
    mock_retry.assert_not_called()
