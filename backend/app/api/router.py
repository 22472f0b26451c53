"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import admin, auth, birthday_parties, bookings, catalog, feedback, payments, vouchers

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(catalog.router)
api_router.include_router(vouchers.router)
api_router.include_router(bookings.router)
api_router.include_router(birthday_parties.router)
api_router.include_router(payments.router)
api_router.include_router(feedback.router)
api_router.include_router(admin.router)
