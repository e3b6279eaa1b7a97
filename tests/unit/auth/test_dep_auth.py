import time
import unittest
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from sessionbook.configuration.config import Config
from sessionbook.dependencies.dep_auth import (
    ensure_booking_participant,
    ensure_booking_trainer,
    ensure_client_access,
    ensure_trainer_access,
    get_current_admin,
    get_current_trainer,
    get_current_user,
    verify_token,
)
from sessionbook.models.mod_auth import AuthUser, UserRole
from sessionbook.validators.val_errors import AuthorizationError
from booking_fakes import make_booking

SECRET = "test-secret"


def make_token(claims, secret=SECRET):
    return jwt.encode(claims, secret, algorithm="HS256")


class TestVerifyToken(unittest.TestCase):
    """Token decoding against the shared HS256 secret"""

    def setUp(self):
        patcher = patch.multiple(Config, JWT_SECRET_KEY=SECRET, JWT_ALGORITHM="HS256", JWT_AUDIENCE=None)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_valid_trainer_token(self):
        token = make_token({"sub": "user-2", "role": "trainer", "trainer_id": "trainer-1",
                            "exp": int(time.time()) + 600})

        user = get_current_user(token)

        assert user.id == "user-2"
        assert user.role == UserRole.TRAINER
        assert user.trainer_id == "trainer-1"

    def test_role_defaults_to_client(self):
        token = make_token({"sub": "user-1", "client_id": "client-1"})

        data = verify_token(token)

        assert data.role == UserRole.CLIENT
        assert data.client_id == "client-1"

    def test_expired_token(self):
        token = make_token({"sub": "user-1", "exp": int(time.time()) - 60})

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)

        assert exc_info.value.status_code == 401

    def test_wrong_signature(self):
        token = make_token({"sub": "user-1"}, secret="someone-else")

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)

        assert exc_info.value.status_code == 401

    def test_missing_subject(self):
        with pytest.raises(HTTPException):
            verify_token(make_token({"role": "client"}))

    def test_unknown_role(self):
        with pytest.raises(HTTPException) as exc_info:
            verify_token(make_token({"sub": "user-1", "role": "superuser"}))

        assert exc_info.value.status_code == 401

    def test_audience_checked_when_configured(self):
        with patch.object(Config, "JWT_AUDIENCE", "sessionbook"):
            verify_token(make_token({"sub": "user-1", "aud": "sessionbook"}))
            with pytest.raises(HTTPException):
                verify_token(make_token({"sub": "user-1", "aud": "another-api"}))


class TestAccessGuards:
    CLIENT = AuthUser(id="u1", role=UserRole.CLIENT, client_id="client-1")
    TRAINER = AuthUser(id="u2", role=UserRole.TRAINER, trainer_id="trainer-1")
    ADMIN = AuthUser(id="u3", role=UserRole.ADMIN)
    STRANGER = AuthUser(id="u4", role=UserRole.CLIENT, client_id="client-9")

    def test_booking_participants(self):
        booking = make_booking()
        for user in (self.CLIENT, self.TRAINER, self.ADMIN):
            ensure_booking_participant(user, booking)

        with pytest.raises(AuthorizationError):
            ensure_booking_participant(self.STRANGER, booking)

    def test_booking_trainer_only(self):
        booking = make_booking()
        ensure_booking_trainer(self.TRAINER, booking)
        ensure_booking_trainer(self.ADMIN, booking)

        with pytest.raises(AuthorizationError) as exc_info:
            ensure_booking_trainer(self.CLIENT, booking)

        assert exc_info.value.status_code == 403

    def test_trainer_access(self):
        ensure_trainer_access(self.TRAINER, "trainer-1")

        with pytest.raises(AuthorizationError):
            ensure_trainer_access(self.TRAINER, "trainer-2")
        with pytest.raises(AuthorizationError):
            ensure_trainer_access(self.CLIENT, "trainer-1")

    def test_client_access(self):
        ensure_client_access(self.CLIENT, "client-1")
        ensure_client_access(self.ADMIN, "client-1")

        with pytest.raises(AuthorizationError):
            ensure_client_access(self.STRANGER, "client-1")

    def test_trainer_dependency(self):
        assert get_current_trainer(self.TRAINER) is self.TRAINER
        assert get_current_trainer(self.ADMIN) is self.ADMIN

        with pytest.raises(AuthorizationError) as exc_info:
            get_current_trainer(self.CLIENT)

        assert exc_info.value.detail["reason"] == "trainer_required"

    def test_admin_dependency(self):
        assert get_current_admin(self.ADMIN) is self.ADMIN

        for user in (self.CLIENT, self.TRAINER):
            with pytest.raises(AuthorizationError) as exc_info:
                get_current_admin(user)
            assert exc_info.value.detail["reason"] == "admin_required"
