"""Notification delivery: log sink, SMTP sink, and their composition."""

from govwatch.notify.dispatchers import CompositeDispatcher, EmailDispatcher, LogDispatcher

__all__ = ["CompositeDispatcher", "EmailDispatcher", "LogDispatcher"]
