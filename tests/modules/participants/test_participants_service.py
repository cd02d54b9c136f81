"""
Unit tests for the participant service layer.

These tests cover:
- Slot checks
- Registration (duplicates, race on insert, failed password email)
- Login with salted and legacy hashes
- Password issuance and reset
"""

import hashlib
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from tryout.core.errors import DeliveryFailureError
from tryout.core.security import decode_token, verify_password
from tryout.modules.participants.schemas import ParticipantRegister
from tryout.modules.participants.service import (
    DuplicateParticipantError,
    InvalidCredentialsError,
    ParticipantNotFoundError,
    RegistrationClosedError,
    ensure_slots_available,
    get_slot_summary,
    issue_password,
    login_participant,
    register_participant,
)


@pytest.fixture
def registration():
    return ParticipantRegister(
        nama="Ana",
        nisn="1234567890",
        tanggal_lahir=date(2007, 5, 17),
        asal_sekolah="SMAN 1 Ciamis",
        whatsapp="081234567890",
        email="Ana@Example.com",
    )


@pytest.fixture
def mock_repo():
    with patch("tryout.modules.participants.service.repository") as repo:
        repo.count = AsyncMock(return_value=0)
        repo.find_by_email_or_nisn = AsyncMock(return_value=None)
        repo.get_by_email = AsyncMock(return_value=None)
        repo.create = AsyncMock()
        repo.update_password = AsyncMock()
        yield repo


@pytest.fixture
def mock_send_password():
    with patch(
        "tryout.modules.participants.service.send_participant_password",
        new_callable=AsyncMock,
    ) as mock_send:
        mock_send.return_value = True
        yield mock_send


class TestSlots:
    @pytest.mark.asyncio
    async def test_slot_summary(self, mock_db, mock_repo):
        mock_repo.count.return_value = 250

        result = await get_slot_summary(mock_db)

        assert result.total_slots == 1000
        assert result.registered == 250
        assert result.remaining_slots == 750
        dumped = result.model_dump(by_alias=True)
        assert dumped["totalSlots"] == 1000
        assert dumped["remainingSlots"] == 750

    @pytest.mark.asyncio
    async def test_slots_available_below_quota(self, mock_db, mock_repo):
        mock_repo.count.return_value = 999
        await ensure_slots_available(mock_db)

    @pytest.mark.asyncio
    async def test_quota_full(self, mock_db, mock_repo):
        mock_repo.count.return_value = 1000

        with pytest.raises(RegistrationClosedError) as exc_info:
            await ensure_slots_available(mock_db)

        assert exc_info.value.message == "Kuota pendaftaran sudah penuh."


class TestRegisterParticipant:
    @pytest.mark.asyncio
    async def test_register_success(
        self, mock_db, mock_repo, mock_send_password, registration, sample_participant
    ):
        mock_repo.create.return_value = sample_participant

        result = await register_participant(mock_db, registration)

        assert result.success is True
        assert result.email_sent is True
        assert result.participant_id == sample_participant.id

        create_kwargs = mock_repo.create.call_args.kwargs
        assert create_kwargs["email"] == "ana@example.com"
        assert create_kwargs["nisn"] == "1234567890"

        # The emailed password matches the stored salted hash
        sent_password = mock_send_password.call_args.kwargs["password"]
        assert len(sent_password) == 12
        assert ":" in create_kwargs["password_hash"]
        assert verify_password(sent_password, create_kwargs["password_hash"])

        dumped = result.model_dump(by_alias=True)
        assert dumped["participantId"] == sample_participant.id
        assert dumped["emailSent"] is True
        assert "password" not in dumped

    @pytest.mark.asyncio
    async def test_duplicate_nisn_rejected(
        self, mock_db, mock_repo, mock_send_password, registration, sample_participant
    ):
        """A second registration with an already used NISN creates nothing."""
        mock_repo.find_by_email_or_nisn.return_value = sample_participant
        other = registration.model_copy(update={"email": "other@example.com"})

        with pytest.raises(DuplicateParticipantError) as exc_info:
            await register_participant(mock_db, other)

        assert exc_info.value.message == "Email atau NISN sudah terdaftar."
        assert exc_info.value.error_code == "CONFLICT"
        mock_repo.create.assert_not_called()
        mock_send_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_unique_violation_on_insert_is_conflict(
        self, mock_db, mock_repo, mock_send_password, registration
    ):
        mock_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(DuplicateParticipantError):
            await register_participant(mock_db, registration)

        mock_db.rollback.assert_awaited_once()
        mock_send_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_email_still_registers(
        self, mock_db, mock_repo, mock_send_password, registration, sample_participant
    ):
        mock_repo.create.return_value = sample_participant
        mock_send_password.return_value = False

        result = await register_participant(mock_db, registration)

        assert result.success is True
        assert result.email_sent is False
        assert "Lupa Password" in result.message

    @pytest.mark.asyncio
    async def test_email_exception_still_registers(
        self, mock_db, mock_repo, mock_send_password, registration, sample_participant
    ):
        mock_repo.create.return_value = sample_participant
        mock_send_password.side_effect = RuntimeError("provider down")

        result = await register_participant(mock_db, registration)

        assert result.email_sent is False


class TestLoginParticipant:
    @pytest.mark.asyncio
    async def test_login_with_salted_hash(
        self, mock_db, mock_repo, sample_participant, participant_password
    ):
        mock_repo.get_by_email.return_value = sample_participant

        result = await login_participant(mock_db, "ana@example.com", participant_password)

        assert result.success is True
        assert result.message == "Login berhasil."
        assert result.user.id == sample_participant.id

        dumped = result.model_dump(by_alias=True)
        assert "password_hash" not in dumped["user"]
        assert dumped["accessToken"]

        payload = decode_token(result.access_token)
        assert payload["sub"] == str(sample_participant.id)
        assert payload["role"] == "participant"

    @pytest.mark.asyncio
    async def test_login_with_legacy_hash(self, mock_db, mock_repo, sample_participant):
        sample_participant.password_hash = hashlib.sha256(b"lama123").hexdigest()
        mock_repo.get_by_email.return_value = sample_participant

        result = await login_participant(mock_db, "ana@example.com", "lama123")

        assert result.success is True

    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_db, mock_repo, sample_participant):
        mock_repo.get_by_email.return_value = sample_participant

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await login_participant(mock_db, "ana@example.com", "salah")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Email atau password salah."

    @pytest.mark.asyncio
    async def test_unknown_email_same_error(self, mock_db, mock_repo):
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await login_participant(mock_db, "nobody@example.com", "whatever")

        assert exc_info.value.message == "Email atau password salah."


class TestIssuePassword:
    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db, mock_repo, mock_send_password):
        with pytest.raises(ParticipantNotFoundError) as exc_info:
            await issue_password(mock_db, "nobody@example.com")

        assert exc_info.value.message == "Email tidak terdaftar dalam sistem."
        assert exc_info.value.status_code == 404
        mock_send_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_reset_writes_salted_hash_and_commits(
        self, mock_db, mock_repo, mock_send_password, sample_participant
    ):
        mock_repo.get_by_email.return_value = sample_participant

        result = await issue_password(mock_db, "ana@example.com", is_reset=True)

        assert result.success is True
        new_hash = mock_repo.update_password.call_args.args[2]
        sent = mock_send_password.call_args.kwargs
        assert sent["is_reset"] is True
        assert sent["to_email"] == "ana@example.com"
        assert ":" in new_hash
        assert verify_password(sent["password"], new_hash)
        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_initial_issuance_uses_same_hash_format(
        self, mock_db, mock_repo, mock_send_password, sample_participant
    ):
        mock_repo.get_by_email.return_value = sample_participant

        await issue_password(mock_db, "ana@example.com", is_reset=False)

        new_hash = mock_repo.update_password.call_args.args[2]
        salt, digest = new_hash.split(":")
        assert len(salt) == 32
        assert mock_send_password.call_args.kwargs["is_reset"] is False

    @pytest.mark.asyncio
    async def test_failed_delivery_rolls_back(
        self, mock_db, mock_repo, mock_send_password, sample_participant
    ):
        mock_repo.get_by_email.return_value = sample_participant
        mock_send_password.return_value = False

        with pytest.raises(DeliveryFailureError) as exc_info:
            await issue_password(mock_db, "ana@example.com", is_reset=True)

        assert exc_info.value.status_code == 200
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_called()


class TestRegisterWithoutMailConfig:
    @pytest.mark.asyncio
    async def test_fails_closed(self, mock_db, mock_repo, registration, monkeypatch):
        from tryout.core.config import settings
        from tryout.core.errors import ConfigurationError

        monkeypatch.setattr(settings, "resend_api_key", None)

        with pytest.raises(ConfigurationError):
            await register_participant(mock_db, registration)

        mock_repo.create.assert_not_called()


def test_registration_form_fixture_is_normalized(registration):
    assert registration.email == "ana@example.com"


