"""
Collaborator factory.
Configures which notifier and expiration scheduler the services receive.
"""

from typing import Optional

from app.core.config import get_settings
from app.services.interfaces import ExpirationScheduler, LogNotifier, Notifier, NoopScheduler, SmtpNotifier


def build_notifier() -> Notifier:
    """
    NOTIFIER_BACKEND selects the implementation:
    - smtp: SmtpNotifier
    - anything else: LogNotifier
    """
    if get_settings().NOTIFIER_BACKEND == "smtp":
        return SmtpNotifier()
    return LogNotifier()


def build_scheduler() -> ExpirationScheduler:
    if get_settings().SCHEDULER_BACKEND == "celery":
        from app.services.interfaces.celery_scheduler import CeleryExpirationScheduler

        return CeleryExpirationScheduler()
    return NoopScheduler()


# Singleton instances
_notifier: Optional[Notifier] = None
_scheduler: Optional[ExpirationScheduler] = None


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = build_notifier()
    return _notifier


def get_expiration_scheduler() -> ExpirationScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = build_scheduler()
    return _scheduler
