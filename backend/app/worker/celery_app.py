"""
Celery application for delayed booking work.

Redis is both broker and result backend. Expiration tasks are enqueued with a
countdown of a full day, so the broker visibility timeout must exceed it or
Redis would redeliver the message before it is due.
"""

from typing import Any

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from app.core.config import get_settings
from app.core.logging import setup_logging

settings = get_settings()


def create_celery_app() -> Celery:
    celery_app = Celery(
        "ski_booking",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["app.worker.tasks"],
    )

    visibility_timeout = settings.EXPIRATION_DELAY_HOURS * 3600 + 3600

    celery_app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        # At-least-once: ack after the handler ran, redeliver if the worker dies
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        worker_prefetch_multiplier=1,
        task_soft_time_limit=60,
        task_time_limit=120,
        result_expires=3600,
        worker_hijack_root_logger=False,
        broker_transport_options={"visibility_timeout": visibility_timeout},
    )
    return celery_app


@celery_setup_logging.connect
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Route worker logs through the application's structlog setup."""
    setup_logging("worker")


celery_app = create_celery_app()
