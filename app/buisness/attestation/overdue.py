"""
Derived overdue status for attestation records

Nothing here is stored. Overdue is recomputed on every read from the
campaign's start_date, its escalation threshold and the injected clock.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.buisness.attestation.state_machine import RecordStateMachine


@dataclass(frozen=True)
class OverdueStatus:
    days_elapsed: int
    days_late: int
    is_overdue: bool

    def to_dict(self) -> dict:
        return {
            'days_elapsed': self.days_elapsed,
            'days_late': self.days_late,
            'is_overdue': self.is_overdue,
        }


def days_since(start: Optional[datetime], now: datetime) -> int:
    """Whole days from start to now, never negative"""
    if start is None:
        return 0
    # timedelta.days floors, so a partial day does not count
    return max(0, (now - start).days)


def compute_overdue(record_status: str, start_date: Optional[datetime],
                    escalation_days: int, now: datetime) -> OverdueStatus:
    """
    Compute overdue fields for a record.

    Args:
        record_status: Record status
        start_date: Campaign start date
        escalation_days: Campaign escalation threshold in days
        now: Current time

    Returns:
        OverdueStatus: days_elapsed, days_late and the overdue flag
    """
    days_elapsed = days_since(start_date, now)
    days_late = max(0, days_elapsed - (escalation_days or 0))
    is_overdue = record_status != RecordStateMachine.COMPLETED and days_late > 0
    return OverdueStatus(days_elapsed=days_elapsed, days_late=days_late, is_overdue=is_overdue)


def overdue_for(record, now: datetime) -> OverdueStatus:
    campaign = record.campaign
    return compute_overdue(record.status, campaign.start_date, campaign.escalation_days, now)
