"""
Clock abstraction for the attestation core

Overdue status, sweep thresholds and every timestamp written by the core read
"now" through a Clock so the time source can be fixed in tests.
"""

from datetime import datetime, timedelta
from flask import current_app


class Clock:
    """Source of the current time (naive UTC)"""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock(Clock):
    """
    Clock frozen at a given instant until moved with set() or advance().
    """

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by timedelta(**kwargs) and return the new time"""
        self._now = self._now + timedelta(**kwargs)
        return self._now


def get_clock() -> Clock:
    """Return the clock registered on the current application"""
    return current_app.extensions['attestation_clock']
