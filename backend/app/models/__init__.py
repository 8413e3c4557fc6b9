from app.models.resort import Resort
from app.models.user import User
from app.models.service import BookableService, Hotel, Track, SERVICE_MODELS
from app.models.booking import Booking, CANCELLATION_REASONS

__all__ = [
    "Resort", "User",
    "BookableService", "Hotel", "Track", "SERVICE_MODELS",
    "Booking", "CANCELLATION_REASONS",
]
