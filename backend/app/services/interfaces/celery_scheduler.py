"""
Celery-backed expiration scheduler.
"""

import asyncio
from datetime import timedelta

from app.core.logging import get_logger
from app.services.interfaces.scheduler import ExpirationScheduler

logger = get_logger(__name__)


class CeleryExpirationScheduler(ExpirationScheduler):
    """Enqueues `expire_booking_task` with a countdown equal to the delay."""

    async def schedule(self, booking_id: int, delay: timedelta) -> None:
        from app.worker.tasks import expire_booking_task

        countdown = int(delay.total_seconds())
        # apply_async talks to the broker synchronously
        result = await asyncio.to_thread(
            expire_booking_task.apply_async, args=[booking_id], countdown=countdown
        )
        logger.info("expiration_scheduled", booking_id=booking_id, countdown_s=countdown, task_id=result.id)
