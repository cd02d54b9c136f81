"""
Shared test fixtures.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from tryout.core import rate_limit
from tryout.core.config import settings
from tryout.core.security import hash_password
from tryout.modules.participants.models import Participant


@pytest.fixture(autouse=True)
def configured_settings(monkeypatch):
    """Provide the secrets every service checks for."""
    monkeypatch.setattr(settings, "python_env", "test")
    monkeypatch.setattr(settings, "otp_secret", "test-otp-secret")
    monkeypatch.setattr(settings, "jwt_secret_key", "test-jwt-secret")
    monkeypatch.setattr(settings, "resend_api_key", "re_test_key")
    monkeypatch.setattr(settings, "max_participants", 1000)
    monkeypatch.setattr(settings, "payment_amount", 10000)
    return settings


@pytest.fixture(autouse=True)
def clear_rate_limits():
    rate_limit._memory_store.clear()
    rate_limit._memory_windows.clear()
    yield
    rate_limit._memory_store.clear()
    rate_limit._memory_windows.clear()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def participant_password():
    return "Rahasia123!"


@pytest.fixture
def sample_participant(participant_password):
    """A registered participant with a salted password hash."""
    return Participant(
        id=uuid4(),
        nama="Ana",
        nisn="1234567890",
        tanggal_lahir=date(2007, 5, 17),
        asal_sekolah="SMAN 1 Ciamis",
        whatsapp="081234567890",
        email="ana@example.com",
        password_hash=hash_password(participant_password),
        registered_at=datetime(2026, 9, 1, 8, 0, tzinfo=UTC),
        updated_at=datetime(2026, 9, 1, 8, 0, tzinfo=UTC),
    )
