"""
OTP Service Layer

Issues and verifies the one-time codes that prove control of an email
address before credentials are issued.

Flow:
1. issue_otp: generate a 6-digit code, store sha256(code + OTP_SECRET) with a
   5 minute expiry (replacing any previous code for the email), email the
   plain code. If the email cannot be sent the stored code is deleted again.
2. verify_otp: look up the code for the email, reject it when missing,
   expired (and delete it) or different; on success delete it so it can
   only be used once.

There is no server-side resend cooldown: the client enforces it.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.config import settings
from tryout.core.email import ensure_email_configured, send_otp_code
from tryout.core.errors import ConfigurationError, DeliveryFailureError, ServiceError
from tryout.core.schemas import ApiResponse
from tryout.modules.otp import repository
from tryout.modules.otp.schemas import OtpIssuedResponse

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


class OtpNotFoundError(ServiceError):
    """Raised when no code is pending for the email."""

    def __init__(self):
        super().__init__(
            message="OTP tidak ditemukan. Silakan minta OTP baru.",
            error_code="OTP_NOT_FOUND",
            status_code=400,
        )


class OtpExpiredError(ServiceError):
    """Raised when the pending code is past its expiry."""

    def __init__(self):
        super().__init__(
            message="OTP sudah kadaluarsa. Silakan minta OTP baru.",
            error_code="OTP_EXPIRED",
            status_code=400,
        )


class InvalidOtpError(ServiceError):
    """Raised when the submitted code does not match."""

    def __init__(self):
        super().__init__(
            message="OTP tidak valid.",
            error_code="OTP_INVALID",
            status_code=400,
        )


def _otp_secret() -> str:
    if not settings.otp_secret:
        logger.error("OTP_SECRET not set - refusing to issue or verify codes")
        raise ConfigurationError("Konfigurasi OTP tidak lengkap.")
    return settings.otp_secret


def generate_otp() -> str:
    """Return a uniformly random 6-digit code in [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def hash_otp(code: str, secret: str) -> str:
    """Hex sha256 of the code followed by the server secret."""
    return hashlib.sha256(f"{code}{secret}".encode()).hexdigest()


async def issue_otp(db: AsyncSession, email: str, nama: str) -> OtpIssuedResponse:
    """
    Issue a new code for the email and send it.

    Args:
        db: Database session
        email: Address to verify
        nama: Registrant name used in the email greeting

    Returns:
        OtpIssuedResponse with the expiry time

    Raises:
        ConfigurationError: If OTP_SECRET or the mail credentials are missing
        DeliveryFailureError: If the email could not be sent (code is removed)
    """
    secret = _otp_secret()
    ensure_email_configured()

    email = email.strip().lower()
    code = generate_otp()
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.otp_expiry_minutes)

    await repository.upsert(db, email, hash_otp(code, secret), expires_at)
    logger.info(f"Issued OTP for {email}")

    try:
        email_sent = await send_otp_code(
            to_email=email,
            nama=nama,
            code=code,
            expiry_minutes=settings.otp_expiry_minutes,
        )
    except Exception as e:
        logger.error(f"Exception sending OTP email to {email}: {e}", exc_info=True)
        email_sent = False

    if not email_sent:
        # Never leave a code server-side that the user did not receive
        await repository.delete_by_email(db, email)
        logger.warning(f"OTP for {email} removed after failed delivery")
        raise DeliveryFailureError("Gagal mengirim OTP ke email Anda. Silakan coba lagi.")

    return OtpIssuedResponse(
        success=True,
        message="OTP berhasil dikirim ke email Anda.",
        expires_at=expires_at,
    )


async def verify_otp(db: AsyncSession, email: str, code: str) -> ApiResponse:
    """
    Verify and consume the pending code for the email.

    Raises:
        ConfigurationError: If OTP_SECRET is missing
        OtpNotFoundError: No code pending for the email
        OtpExpiredError: The code expired (it is deleted)
        InvalidOtpError: The code does not match (it is kept)
    """
    secret = _otp_secret()
    email = email.strip().lower()

    record = await repository.get_by_email(db, email)

    if record is None:
        logger.warning(f"OTP verification without pending code: {email}")
        raise OtpNotFoundError()

    if datetime.now(UTC) > record.expires_at:
        await repository.delete_by_email(db, email)
        logger.warning(f"Expired OTP submitted for {email}")
        raise OtpExpiredError()

    if not hmac.compare_digest(hash_otp(code.strip(), secret), record.otp_hash):
        logger.warning(f"Invalid OTP submitted for {email}")
        raise InvalidOtpError()

    await repository.delete_by_email(db, email)
    logger.info(f"OTP verified for {email}")

    return ApiResponse(success=True, message="Email berhasil diverifikasi!")


async def purge_expired(db: AsyncSession) -> int:
    """Delete every expired code. Returns the number removed."""
    return await repository.delete_expired(db)
