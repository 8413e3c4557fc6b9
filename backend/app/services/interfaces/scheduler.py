"""
Delayed-task port for booking expiration.
"""

from abc import ABC, abstractmethod
from datetime import timedelta

from app.core.logging import get_logger

logger = get_logger(__name__)


class ExpirationScheduler(ABC):
    """
    Interface for scheduling the expiration check of a booking.

    Implementations must deliver at least once; the handler is idempotent.
    - CeleryExpirationScheduler: countdown task on the Celery broker
    - NoopScheduler: drops the request (local runs without a broker)
    """

    @abstractmethod
    async def schedule(self, booking_id: int, delay: timedelta) -> None:
        pass


class NoopScheduler(ExpirationScheduler):
    async def schedule(self, booking_id: int, delay: timedelta) -> None:
        logger.warning("expiration_not_scheduled", booking_id=booking_id, delay_s=delay.total_seconds())
