"""Celery tasks for the booking lifecycle."""

import asyncio
from typing import Optional

from app.core.logging import booking_context, get_logger
from app.db.session import worker_sessionmaker
from app.services.booking_service import expire_booking
from app.services.cache_service import close_redis, invalidate_service_cache
from app.services.providers import get_notifier
from app.worker.celery_app import celery_app

logger = get_logger(__name__)


async def run_expiration(booking_id: int) -> Optional[int]:
    """Expire one booking in its own session. Returns the id when it was cancelled."""
    async with worker_sessionmaker() as session_factory:
        async with session_factory() as session:
            try:
                booking = await expire_booking(session, booking_id, notifier=get_notifier())
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    if booking is None:
        return None

    # The Redis client belongs to this task's event loop
    try:
        await invalidate_service_cache()
    finally:
        await close_redis()
    return booking.id


@celery_app.task(name="app.worker.tasks.expire_booking", acks_late=True)
def expire_booking_task(booking_id: int) -> Optional[int]:
    """Cancel a booking that is still pending once its approval window has passed."""
    with booking_context(booking_id, task="expire_booking"):
        logger.info("expiration_task_started")
        expired = asyncio.run(run_expiration(booking_id))
        logger.info("expiration_task_finished", cancelled=expired is not None)
    return expired
