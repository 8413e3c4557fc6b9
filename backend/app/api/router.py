"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import auth, users, resorts, services, bookings, wallet

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(resorts.router)
api_router.include_router(services.hotels_router)
api_router.include_router(services.tracks_router)
api_router.include_router(bookings.router)
api_router.include_router(wallet.router)
