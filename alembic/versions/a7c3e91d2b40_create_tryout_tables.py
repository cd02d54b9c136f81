"""create tryout tables

Revision ID: a7c3e91d2b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration:
1. Creates participants (unique email and NISN)
2. Creates otp_codes (one live code per email)
3. Creates payment_proofs with the payment_status enum
4. Creates admin_accounts with the admin_role enum
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c3e91d2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the tryout tables."""
    payment_status_enum = postgresql.ENUM(
        "pending",
        "verified",
        "rejected",
        name="payment_status",
        create_type=False,
    )
    payment_status_enum.create(op.get_bind(), checkfirst=True)

    admin_role_enum = postgresql.ENUM(
        "admin",
        name="admin_role",
        create_type=False,
    )
    admin_role_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("nama", sa.String(length=200), nullable=False),
        sa.Column("nisn", sa.String(length=10), nullable=False),
        sa.Column("tanggal_lahir", sa.Date(), nullable=False),
        sa.Column("asal_sekolah", sa.String(length=200), nullable=False),
        sa.Column("whatsapp", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column(
            "registered_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_participants_email", "participants", ["email"], unique=True)
    op.create_index("ix_participants_nisn", "participants", ["nisn"], unique=True)

    op.create_table(
        "otp_codes",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("otp_hash", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("email"),
    )
    op.create_index("ix_otp_codes_expires_at", "otp_codes", ["expires_at"])

    op.create_table(
        "payment_proofs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("participant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("status", payment_status_enum, nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_by", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["participant_id"], ["participants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_payment_proofs_participant_created",
        "payment_proofs",
        ["participant_id", "created_at"],
    )
    op.create_index("ix_payment_proofs_status", "payment_proofs", ["status"])

    op.create_table(
        "admin_accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", admin_role_enum, nullable=False, server_default="admin"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_accounts_email", "admin_accounts", ["email"], unique=True)


def downgrade() -> None:
    """Drop the tryout tables and enum types."""
    op.drop_index("ix_admin_accounts_email", table_name="admin_accounts")
    op.drop_table("admin_accounts")

    op.drop_index("ix_payment_proofs_status", table_name="payment_proofs")
    op.drop_index("ix_payment_proofs_participant_created", table_name="payment_proofs")
    op.drop_table("payment_proofs")

    op.drop_index("ix_otp_codes_expires_at", table_name="otp_codes")
    op.drop_table("otp_codes")

    op.drop_index("ix_participants_nisn", table_name="participants")
    op.drop_index("ix_participants_email", table_name="participants")
    op.drop_table("participants")

    postgresql.ENUM(name="admin_role").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="payment_status").drop(op.get_bind(), checkfirst=True)
