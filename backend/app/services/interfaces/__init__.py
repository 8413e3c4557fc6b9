"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import Notifier, LogNotifier, SmtpNotifier
from .scheduler import ExpirationScheduler, NoopScheduler

__all__ = ['Notifier', 'LogNotifier', 'SmtpNotifier', 'ExpirationScheduler', 'NoopScheduler']
