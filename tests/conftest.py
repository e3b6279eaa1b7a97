from datetime import time
from unittest.mock import MagicMock, patch

import pytest

from sessionbook.configuration.database import CosmosStore
from sessionbook.models.mod_availability import DaySchedule, TrainerAvailability
from sessionbook.models.mod_package import Package
from booking_fakes import NOW, FakeContainer


@pytest.fixture
def store():
    """Store whose ledger, booking and availability containers are in-memory fakes"""
    return CosmosStore(
        bookings=FakeContainer(),
        availabilities=FakeContainer(),
        packages=MagicMock(),
        trainers=MagicMock(),
        ledgers=FakeContainer(),
        notifications=MagicMock(),
    )


@pytest.fixture
def frozen_now():
    with patch('sessionbook.validators.val_booking.BookingValidator._get_current_time') as mock_now:
        mock_now.return_value = NOW
        yield mock_now


@pytest.fixture
def package():
    return Package(
        id="pkg-1",
        trainer_id="trainer-1",
        name="Ten sessions",
        duration_value=8,
        duration_unit="weeks",
        total_sessions=10,
        price=300.0,
    )


@pytest.fixture
def availability():
    """Weekdays 09:00-17:00, weekends off"""
    return TrainerAvailability(
        id="trainer-1",
        trainer_id="trainer-1",
        schedule=[
            DaySchedule(day_of_week=day, start_time=time(9, 0), end_time=time(17, 0))
            for day in range(5)
        ],
        blackout_dates=[],
    )
