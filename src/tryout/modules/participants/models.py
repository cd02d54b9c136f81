"""
Participant Models

The credential store: one row per registered tryout participant.
"""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tryout.core.database import Base

if TYPE_CHECKING:
    from tryout.modules.payments.models import PaymentProof


class Participant(Base):
    """
    A registered participant.

    Email (stored lower-cased) and NISN are both unique. The unique
    constraints are the authoritative duplicate check; the service's
    pre-check is only a fast path.
    """

    __tablename__ = "participants"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    nama: Mapped[str] = mapped_column(String(200), nullable=False)
    nisn: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=False)
    tanggal_lahir: Mapped[date] = mapped_column(Date, nullable=False)
    asal_sekolah: Mapped[str] = mapped_column(String(200), nullable=False)
    whatsapp: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    # "salt:sha256(salt+password)", or a bare sha256 digest for legacy rows
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    payment_proofs: Mapped[list["PaymentProof"]] = relationship(
        "PaymentProof", back_populates="participant", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, email={self.email}, nisn={self.nisn})>"
