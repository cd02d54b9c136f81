"""
Participant Schemas

Pydantic schemas for request validation and response serialization.
Response payload keys use the camelCase names the front end reads
(participantId, emailSent, accessToken...).
"""

import re
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from tryout.core.schemas import ApiResponse

NISN_PATTERN = re.compile(r"^\d{10}$")


class ParticipantRegister(BaseModel):
    """Request body for POST /register-participant."""

    model_config = ConfigDict(str_strip_whitespace=True)

    nama: str = Field(..., min_length=1, max_length=200)
    nisn: str = Field(..., min_length=1)
    tanggal_lahir: date
    asal_sekolah: str = Field(..., min_length=1, max_length=200)
    whatsapp: str = Field(..., min_length=1, max_length=20)
    email: EmailStr

    @field_validator("nisn")
    @classmethod
    def validate_nisn(cls, value: str) -> str:
        if not NISN_PATTERN.match(value):
            raise ValueError("NISN harus 10 digit angka.")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class ParticipantLogin(BaseModel):
    """Request body for POST /login-participant."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class SendPasswordRequest(BaseModel):
    """
    Request body for POST /send-password.

    Only the email is used; the greeting uses the stored name.
    """

    email: EmailStr
    nama: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ParticipantPublic(BaseModel):
    """Participant data returned to clients. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    nama: str
    nisn: str
    tanggal_lahir: date
    asal_sekolah: str
    whatsapp: str
    email: str
    registered_at: datetime


class RegisterResponse(ApiResponse):
    """Response after registration. The password is only sent by email."""

    participant_id: UUID = Field(serialization_alias="participantId")
    email_sent: bool = Field(serialization_alias="emailSent")


class LoginResponse(ApiResponse):
    """Response after a successful participant login."""

    user: ParticipantPublic
    access_token: str = Field(serialization_alias="accessToken")
    token_type: str = Field("bearer", serialization_alias="tokenType")


class SlotsResponse(ApiResponse):
    """Registration quota summary."""

    total_slots: int = Field(serialization_alias="totalSlots")
    registered: int
    remaining_slots: int = Field(serialization_alias="remainingSlots")
