"""
Payment Schemas

Pydantic schemas for the participant payment endpoints, the participant
card and the admin verification queue.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tryout.core.schemas import ApiResponse
from tryout.modules.payments.models import PaymentStatus

# ============================================
# Participant side
# ============================================


class PaymentProofItem(BaseModel):
    """A proof as shown to its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: int
    status: PaymentStatus
    admin_notes: str | None = Field(None, serialization_alias="adminNotes")
    created_at: datetime = Field(serialization_alias="createdAt")
    verified_at: datetime | None = Field(None, serialization_alias="verifiedAt")


class PaymentSubmitResponse(ApiResponse):
    payment: PaymentProofItem


class MyPaymentsResponse(ApiResponse):
    """Latest proof plus history, and whether a new upload is allowed."""

    amount: int
    can_upload: bool = Field(serialization_alias="canUpload")
    latest: PaymentProofItem | None = None
    history: list[PaymentProofItem] = Field(default_factory=list)


class ParticipantCard(BaseModel):
    """Printable participant card data."""

    nomor_peserta: str = Field(serialization_alias="nomorPeserta")
    nama: str
    nisn: str
    asal_sekolah: str = Field(serialization_alias="asalSekolah")
    tanggal_lahir: date = Field(serialization_alias="tanggalLahir")
    registered_at: datetime = Field(serialization_alias="registeredAt")
    verified_at: datetime | None = Field(None, serialization_alias="verifiedAt")


class ParticipantCardResponse(ApiResponse):
    card: ParticipantCard


# ============================================
# Admin side
# ============================================


class PaymentParticipantInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    nama: str
    nisn: str
    email: str
    whatsapp: str
    asal_sekolah: str


class AdminPaymentItem(BaseModel):
    """A proof in the verification queue."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: int
    status: PaymentStatus
    admin_notes: str | None = None
    created_at: datetime
    verified_at: datetime | None = None
    verified_by: str | None = None
    participant: PaymentParticipantInfo


class AdminPaymentListResponse(ApiResponse):
    payments: list[AdminPaymentItem]
    total: int
    skip: int
    limit: int


class AdminPaymentDetailResponse(ApiResponse):
    payment: AdminPaymentItem
    file_url: str = Field(serialization_alias="fileUrl")


class PaymentStatsResponse(ApiResponse):
    pending: int
    verified: int
    rejected: int
    total: int


class PaymentDecisionRequest(BaseModel):
    """Body for verify / reject. Notes are optional."""

    admin_notes: str | None = Field(None, max_length=1000)


class PaymentDecisionResponse(ApiResponse):
    payment: AdminPaymentItem
