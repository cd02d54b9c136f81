from fastapi import APIRouter

from tryout.modules.auth import router as auth_router
from tryout.modules.otp import router as otp_router
from tryout.modules.participants import router as participants_router
from tryout.modules.payments import admin_router as admin_payments_router
from tryout.modules.payments import router as payments_router

api_router = APIRouter()

api_router.include_router(otp_router, tags=["OTP"])
api_router.include_router(participants_router, tags=["Participants"])
api_router.include_router(payments_router, tags=["Payments"])

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    admin_payments_router,
    prefix="/admin/payments",
    tags=["Admin - Payments"],
)
