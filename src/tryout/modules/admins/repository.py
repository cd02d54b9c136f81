"""
Admin Repository

Database operations for admin accounts.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.modules.admins.models import AdminAccount, AdminRole

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for admin account database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: AdminRole = AdminRole.ADMIN,
        is_active: bool = True,
    ) -> AdminAccount:
        """
        Create a new admin account. Flushes; the caller commits.

        Args:
            db: Database session
            email: Login email (unique, stored lower-cased)
            name: Display name
            password_hash: Salted password hash
            role: Admin role
            is_active: Whether the account may log in

        Returns:
            Created AdminAccount instance
        """
        admin = AdminAccount(
            email=email.lower(),
            name=name,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
        )

        db.add(admin)
        await db.flush()
        await db.refresh(admin)

        logger.info(f"Created admin account: {admin.id} - {admin.email}")
        return admin

    @staticmethod
    async def get_by_id(db: AsyncSession, admin_id: UUID) -> AdminAccount | None:
        return await db.get(AdminAccount, admin_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> AdminAccount | None:
        result = await db.execute(select(AdminAccount).where(AdminAccount.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        admin = await AdminRepository.get_by_email(db, email)
        return admin is not None
