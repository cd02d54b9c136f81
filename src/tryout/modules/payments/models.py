"""
Payment Models

Proof-of-payment uploads and their verification status.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tryout.core.database import Base

if TYPE_CHECKING:
    from tryout.modules.participants.models import Participant


class PaymentStatus(str, enum.Enum):
    """Verification status of a payment proof."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class PaymentProof(Base):
    """
    An uploaded transfer receipt.

    A participant can have several proofs (re-upload after rejection);
    the most recent one by created_at is authoritative.
    """

    __tablename__ = "payment_proofs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    participant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Relative to UPLOAD_DIR
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Email of the deciding admin
    verified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    participant: Mapped["Participant"] = relationship(
        "Participant", back_populates="payment_proofs", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_payment_proofs_participant_created", "participant_id", "created_at"),
        Index("ix_payment_proofs_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<PaymentProof(id={self.id}, participant_id={self.participant_id}, status={self.status})>"
