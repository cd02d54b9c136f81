"""
OTP Schemas
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from tryout.core.schemas import ApiResponse


class SendOtpRequest(BaseModel):
    """
    Body for POST /send-otp.

    `nama` is required when issuing a code, `otp` when verifying one
    (?action=verify). The router enforces which one is needed.
    """

    email: EmailStr
    nama: str | None = Field(None, max_length=200)
    otp: str | None = Field(None, max_length=20)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class OtpIssuedResponse(ApiResponse):
    """Response after a code was emailed."""

    expires_at: datetime = Field(serialization_alias="expiresAt")
