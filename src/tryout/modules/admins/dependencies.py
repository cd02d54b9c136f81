"""
Admin account dependencies.

The JWT proves who the admin was at login. Endpoints of the verification
queue also require the account to still exist and be active, so
deactivating an admin takes effect on the next request.
"""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.auth import AccessDeniedError, AdminUser, get_current_admin_user
from tryout.core.database import get_db
from tryout.modules.admins.repository import AdminRepository

logger = logging.getLogger(__name__)


async def get_current_active_admin(
    admin: AdminUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    """
    Raises:
        AuthenticationError: Missing or invalid token
        AccessDeniedError: Not an admin token, or the account is gone or deactivated
    """
    account = await AdminRepository.get_by_id(db, admin.id)
    if account is None or not account.is_active:
        logger.warning(f"Rejected token of inactive or removed admin {admin.id} ({admin.email})")
        raise AccessDeniedError("Akun admin tidak aktif.")
    return admin
