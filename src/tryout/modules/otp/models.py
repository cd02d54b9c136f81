"""
OTP Models

The OTP ledger: at most one live code per email address.
Only a hash of the code is stored.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from tryout.core.database import Base


class OtpCode(Base):
    """
    A pending email verification code.

    Keyed by the lower-cased email so that issuing a new code replaces the
    previous one. Rows are deleted once verified, once found expired, when
    the email could not be delivered, and by the periodic purge job.
    """

    __tablename__ = "otp_codes"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)

    # sha256(code + OTP_SECRET) as hex
    otp_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_otp_codes_expires_at", "expires_at"),)

    def __repr__(self) -> str:
        return f"<OtpCode(email={self.email}, expires_at={self.expires_at})>"
