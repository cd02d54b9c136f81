"""
Unit tests for the OTP service layer.

These tests cover:
- Code generation and hashing
- Issuing a code (storage, email, rollback on failed delivery)
- Verification outcomes (not found, expired, invalid, success)
- Single use of a code
"""

import hashlib
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tryout.core.config import settings
from tryout.core.errors import ConfigurationError, DeliveryFailureError
from tryout.modules.otp.jobs import JOB_ID_PURGE_EXPIRED, purge_expired_otps, register_otp_jobs
from tryout.modules.otp.models import OtpCode
from tryout.modules.otp.service import (
    InvalidOtpError,
    OtpExpiredError,
    OtpNotFoundError,
    generate_otp,
    hash_otp,
    issue_otp,
    verify_otp,
)

SECRET = "test-otp-secret"


class FakeOtpRepository:
    """In-memory stand-in for the OTP ledger."""

    def __init__(self):
        self.records: dict[str, OtpCode] = {}

    async def upsert(self, db, email, otp_hash, expires_at):
        self.records[email] = OtpCode(email=email, otp_hash=otp_hash, expires_at=expires_at)

    async def get_by_email(self, db, email):
        return self.records.get(email)

    async def delete_by_email(self, db, email):
        self.records.pop(email, None)


@pytest.fixture
def fake_repo():
    repo = FakeOtpRepository()
    with patch("tryout.modules.otp.service.repository", repo):
        yield repo


@pytest.fixture
def mock_send_otp():
    with patch("tryout.modules.otp.service.send_otp_code", new_callable=AsyncMock) as mock_send:
        mock_send.return_value = True
        yield mock_send


class TestGenerateOtp:
    def test_six_digits_in_range(self):
        for _ in range(200):
            code = generate_otp()
            assert len(code) == 6
            assert 100000 <= int(code) <= 999999

    def test_hash_is_sha256_of_code_and_secret(self):
        assert hash_otp("123456", "s") == hashlib.sha256(b"123456s").hexdigest()


class TestIssueOtp:
    @pytest.mark.asyncio
    async def test_issue_stores_hash_and_sends_code(self, mock_db, fake_repo, mock_send_otp):
        """Issuing for a@b.com / Ana stores only the hash with a 5 minute expiry."""
        before = datetime.now(UTC)

        result = await issue_otp(mock_db, "a@b.com", "Ana")

        assert result.success is True
        assert result.message == "OTP berhasil dikirim ke email Anda."

        sent = mock_send_otp.call_args.kwargs
        assert sent["to_email"] == "a@b.com"
        assert sent["nama"] == "Ana"
        code = sent["code"]
        assert 100000 <= int(code) <= 999999

        record = fake_repo.records["a@b.com"]
        assert record.otp_hash == hashlib.sha256(f"{code}{SECRET}".encode()).hexdigest()
        assert code not in record.otp_hash
        expected_expiry = before + timedelta(minutes=5)
        assert abs((record.expires_at - expected_expiry).total_seconds()) < 5

    @pytest.mark.asyncio
    async def test_issue_normalizes_email(self, mock_db, fake_repo, mock_send_otp):
        await issue_otp(mock_db, "  A@B.com ", "Ana")
        assert list(fake_repo.records) == ["a@b.com"]

    @pytest.mark.asyncio
    async def test_issue_replaces_previous_code(self, mock_db, fake_repo, mock_send_otp):
        await issue_otp(mock_db, "a@b.com", "Ana")
        first_code = mock_send_otp.call_args.kwargs["code"]
        await issue_otp(mock_db, "a@b.com", "Ana")
        second_code = mock_send_otp.call_args.kwargs["code"]

        assert len(fake_repo.records) == 1
        if first_code != second_code:
            with pytest.raises(InvalidOtpError):
                await verify_otp(mock_db, "a@b.com", first_code)
        result = await verify_otp(mock_db, "a@b.com", second_code)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_failed_delivery_removes_code(self, mock_db, fake_repo, mock_send_otp):
        mock_send_otp.return_value = False

        with pytest.raises(DeliveryFailureError) as exc_info:
            await issue_otp(mock_db, "a@b.com", "Ana")

        assert exc_info.value.error_code == "DELIVERY_FAILURE"
        assert "a@b.com" not in fake_repo.records

    @pytest.mark.asyncio
    async def test_delivery_exception_removes_code(self, mock_db, fake_repo, mock_send_otp):
        mock_send_otp.side_effect = RuntimeError("smtp down")

        with pytest.raises(DeliveryFailureError):
            await issue_otp(mock_db, "a@b.com", "Ana")

        assert fake_repo.records == {}

    @pytest.mark.asyncio
    async def test_missing_secret_fails_closed(self, mock_db, fake_repo, mock_send_otp, monkeypatch):
        monkeypatch.setattr(settings, "otp_secret", None)

        with pytest.raises(ConfigurationError) as exc_info:
            await issue_otp(mock_db, "a@b.com", "Ana")

        assert exc_info.value.status_code == 500
        assert fake_repo.records == {}
        mock_send_otp.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_mail_key_fails_closed(self, mock_db, fake_repo, mock_send_otp, monkeypatch):
        monkeypatch.setattr(settings, "resend_api_key", None)

        with pytest.raises(ConfigurationError):
            await issue_otp(mock_db, "a@b.com", "Ana")

        assert fake_repo.records == {}


class TestVerifyOtp:
    @pytest.mark.asyncio
    async def test_verify_success_consumes_code(self, mock_db, fake_repo, mock_send_otp):
        await issue_otp(mock_db, "a@b.com", "Ana")
        code = mock_send_otp.call_args.kwargs["code"]

        result = await verify_otp(mock_db, "a@b.com", code)

        assert result.success is True
        assert result.message == "Email berhasil diverifikasi!"
        assert "a@b.com" not in fake_repo.records

        # Second use of the same code
        with pytest.raises(OtpNotFoundError):
            await verify_otp(mock_db, "a@b.com", code)

    @pytest.mark.asyncio
    async def test_verify_without_code(self, mock_db, fake_repo):
        with pytest.raises(OtpNotFoundError) as exc_info:
            await verify_otp(mock_db, "nobody@b.com", "123456")
        assert exc_info.value.message == "OTP tidak ditemukan. Silakan minta OTP baru."

    @pytest.mark.asyncio
    async def test_verify_expired_deletes_code(self, mock_db, fake_repo):
        fake_repo.records["a@b.com"] = OtpCode(
            email="a@b.com",
            otp_hash=hash_otp("123456", SECRET),
            expires_at=datetime.now(UTC) - timedelta(seconds=1),
        )

        with pytest.raises(OtpExpiredError) as exc_info:
            await verify_otp(mock_db, "a@b.com", "123456")

        assert exc_info.value.message == "OTP sudah kadaluarsa. Silakan minta OTP baru."
        assert "a@b.com" not in fake_repo.records

    @pytest.mark.asyncio
    async def test_verify_wrong_code_keeps_record(self, mock_db, fake_repo):
        fake_repo.records["a@b.com"] = OtpCode(
            email="a@b.com",
            otp_hash=hash_otp("123456", SECRET),
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
        )

        with pytest.raises(InvalidOtpError) as exc_info:
            await verify_otp(mock_db, "a@b.com", "654321")

        assert exc_info.value.message == "OTP tidak valid."
        assert "a@b.com" in fake_repo.records

        result = await verify_otp(mock_db, "a@b.com", "123456")
        assert result.success is True

    @pytest.mark.asyncio
    async def test_verify_is_case_insensitive_on_email(self, mock_db, fake_repo):
        fake_repo.records["a@b.com"] = OtpCode(
            email="a@b.com",
            otp_hash=hash_otp("123456", SECRET),
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
        )

        result = await verify_otp(mock_db, "A@B.COM", "123456")
        assert result.success is True


class TestPurgeJob:
    @pytest.mark.asyncio
    async def test_purge_expired_otps(self, mock_db):
        session_cm = MagicMock()
        session_cm.__aenter__ = AsyncMock(return_value=mock_db)
        session_cm.__aexit__ = AsyncMock(return_value=False)
        session_maker = MagicMock(return_value=session_cm)

        with (
            patch("tryout.modules.otp.jobs.get_session_maker", return_value=session_maker),
            patch("tryout.modules.otp.service.repository") as mock_repo,
        ):
            mock_repo.delete_expired = AsyncMock(return_value=3)

            result = await purge_expired_otps()

        assert result["deleted"] == 3
        mock_repo.delete_expired.assert_awaited_once_with(mock_db)

    def test_register_otp_jobs(self):
        from tryout.core.scheduler import list_registered_jobs

        register_otp_jobs()
        assert JOB_ID_PURGE_EXPIRED in list_registered_jobs()
