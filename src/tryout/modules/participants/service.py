"""
Participant Service Layer

Registration, participant login and password issuance.

Passwords are generated server-side and only ever delivered by email.
New hashes are always salted ("salt:sha256(salt+password)"); unsalted
legacy hashes are still accepted at login.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.auth import PARTICIPANT_ROLE
from tryout.core.config import settings
from tryout.core.email import ensure_email_configured, send_participant_password
from tryout.core.errors import DeliveryFailureError, ServiceError
from tryout.core.schemas import ApiResponse
from tryout.core.security import (
    create_access_token,
    generate_password,
    hash_password,
    verify_password,
)
from tryout.modules.participants import repository
from tryout.modules.participants.models import Participant
from tryout.modules.participants.schemas import (
    LoginResponse,
    ParticipantPublic,
    ParticipantRegister,
    RegisterResponse,
    SlotsResponse,
)

logger = logging.getLogger(__name__)


# ============================================
# Errors
# ============================================


class DuplicateParticipantError(ServiceError):
    """Raised when the email or NISN is already registered."""

    def __init__(self):
        super().__init__(
            message="Email atau NISN sudah terdaftar.",
            error_code="CONFLICT",
            status_code=400,
        )


class RegistrationClosedError(ServiceError):
    """Raised when the participant quota is full."""

    def __init__(self):
        super().__init__(
            message="Kuota pendaftaran sudah penuh.",
            error_code="REGISTRATION_CLOSED",
            status_code=400,
        )


class InvalidCredentialsError(ServiceError):
    """Raised on a failed login. Does not reveal which part was wrong."""

    def __init__(self):
        super().__init__(
            message="Email atau password salah.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )


class ParticipantNotFoundError(ServiceError):
    """Raised when no participant exists for the email."""

    def __init__(self, message: str = "Email tidak terdaftar dalam sistem."):
        super().__init__(
            message=message,
            error_code="PARTICIPANT_NOT_FOUND",
            status_code=404,
        )


# ============================================
# Slots
# ============================================


async def get_slot_summary(db: AsyncSession) -> SlotsResponse:
    """Return the quota, the number registered and what is left."""
    registered = await repository.count(db)
    total = settings.max_participants

    return SlotsResponse(
        success=True,
        message="Data kuota pendaftaran.",
        total_slots=total,
        registered=registered,
        remaining_slots=max(total - registered, 0),
    )


async def ensure_slots_available(db: AsyncSession) -> None:
    """
    Raises:
        RegistrationClosedError: If the quota is reached
    """
    registered = await repository.count(db)
    if registered >= settings.max_participants:
        logger.info(f"Registration refused: quota full ({registered}/{settings.max_participants})")
        raise RegistrationClosedError()


# ============================================
# Registration
# ============================================


async def register_participant(db: AsyncSession, data: ParticipantRegister) -> RegisterResponse:
    """
    Register a participant and email them a generated password.

    The record is kept even when the email fails; the response then says
    emailSent=false and points the participant to the forgot-password flow.

    Raises:
        ConfigurationError: If the mail credentials are missing
        DuplicateParticipantError: If the email or NISN is taken
    """
    ensure_email_configured()

    email = data.email.lower()

    existing = await repository.find_by_email_or_nisn(db, email, data.nisn)
    if existing is not None:
        logger.info(f"Duplicate registration attempt for {email} / NISN {data.nisn}")
        raise DuplicateParticipantError()

    password = generate_password()

    try:
        participant = await repository.create(
            db,
            nama=data.nama,
            nisn=data.nisn,
            tanggal_lahir=data.tanggal_lahir,
            asal_sekolah=data.asal_sekolah,
            whatsapp=data.whatsapp,
            email=email,
            password_hash=hash_password(password),
        )
    except IntegrityError as e:
        # Lost a race against a concurrent registration for the same email or NISN
        await db.rollback()
        logger.warning(f"Unique constraint hit while registering {email}: {e.orig}")
        raise DuplicateParticipantError() from e

    email_sent = await _deliver_password(participant, password, is_reset=False)

    if email_sent:
        message = "Pendaftaran berhasil. Password telah dikirim ke email Anda."
    else:
        message = (
            "Pendaftaran berhasil, tetapi password gagal dikirim ke email. "
            "Silakan gunakan fitur Lupa Password untuk mendapatkan password baru."
        )

    return RegisterResponse(
        success=True,
        message=message,
        participant_id=participant.id,
        email_sent=email_sent,
    )


# ============================================
# Login
# ============================================


async def login_participant(db: AsyncSession, email: str, password: str) -> LoginResponse:
    """
    Authenticate a participant against the stored hash (salted or legacy).

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
    """
    participant = await repository.get_by_email(db, email)

    if participant is None or not verify_password(password, participant.password_hash):
        logger.warning(f"Failed participant login for {email}")
        raise InvalidCredentialsError()

    token = create_access_token(
        subject=str(participant.id),
        additional_claims={
            "email": participant.email,
            "role": PARTICIPANT_ROLE,
            "name": participant.nama,
        },
    )

    logger.info(f"Participant logged in: {participant.id}")

    return LoginResponse(
        success=True,
        message="Login berhasil.",
        user=ParticipantPublic.model_validate(participant),
        access_token=token,
    )


# ============================================
# Password issuance / reset
# ============================================


async def issue_password(db: AsyncSession, email: str, is_reset: bool = False) -> ApiResponse:
    """
    Generate a new password for an existing participant and email it.

    The new hash is only committed once the email went out, so a failed
    delivery leaves the previous password valid.

    Raises:
        ConfigurationError: If the mail credentials are missing
        ParticipantNotFoundError: If the email is not registered
        DeliveryFailureError: If the email could not be sent (HTTP 200, success=false)
    """
    ensure_email_configured()

    participant = await repository.get_by_email(db, email)
    if participant is None:
        logger.info(f"Password requested for unknown email {email}")
        raise ParticipantNotFoundError()

    password = generate_password()
    await repository.update_password(db, participant, hash_password(password))

    if not await _deliver_password(participant, password, is_reset=is_reset):
        await db.rollback()
        raise DeliveryFailureError(
            "Gagal mengirim password ke email Anda. Silakan coba lagi.",
            status_code=200,
        )

    await db.commit()
    logger.info(f"New password issued for participant {participant.id} (reset={is_reset})")

    if is_reset:
        message = "Password baru telah dikirim ke email Anda."
    else:
        message = "Password berhasil dikirim ke email Anda."
    return ApiResponse(success=True, message=message)


async def _deliver_password(participant: Participant, password: str, is_reset: bool) -> bool:
    try:
        sent = await send_participant_password(
            to_email=participant.email,
            nama=participant.nama,
            password=password,
            is_reset=is_reset,
        )
    except Exception as e:
        logger.error(f"Exception sending password to {participant.email}: {e}", exc_info=True)
        sent = False

    if not sent:
        logger.warning(f"Password email not delivered to participant {participant.id}")
    return sent
