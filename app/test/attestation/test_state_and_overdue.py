"""
Tests for the lifecycle state machines and the derived overdue status
"""
from datetime import datetime, timedelta

import pytest

from app.buisness.attestation.errors import InvalidStateError
from app.buisness.attestation.overdue import compute_overdue, days_since
from app.buisness.attestation.state_machine import CampaignStateMachine, RecordStateMachine

NOW = datetime(2024, 3, 1, 9, 0, 0)


@pytest.mark.parametrize('from_status,to_status,allowed', [
    ('draft', 'active', True),
    ('draft', 'cancelled', False),
    ('draft', 'completed', False),
    ('active', 'completed', True),
    ('active', 'cancelled', True),
    ('active', 'active', False),
    ('completed', 'active', False),
    ('cancelled', 'active', False),
    ('cancelled', 'cancelled', False),
])
def test_campaign_transitions(from_status, to_status, allowed):
    assert CampaignStateMachine.can_transition(from_status, to_status) is allowed


def test_campaign_invalid_transition_raises():
    with pytest.raises(InvalidStateError):
        CampaignStateMachine.validate_transition('completed', 'cancelled')
    assert CampaignStateMachine.get_allowed_transitions('completed') == set()
    assert CampaignStateMachine.is_terminal('cancelled')


def test_record_transitions():
    assert RecordStateMachine.can_transition('pending', 'in_progress')
    assert RecordStateMachine.can_transition('pending', 'completed')
    assert RecordStateMachine.can_transition('completed', 'completed'), "Re-completing retries promotion"
    assert not RecordStateMachine.can_transition('completed', 'pending')
    assert not RecordStateMachine.can_transition('in_progress', 'pending')


def test_overdue_counts_whole_days_past_escalation():
    status = compute_overdue('pending', NOW - timedelta(days=12), 10, NOW)
    assert status.days_elapsed == 12
    assert status.days_late == 2
    assert status.is_overdue


def test_partial_day_does_not_make_record_overdue():
    status = compute_overdue('in_progress', NOW - timedelta(days=10, hours=23), 10, NOW)
    assert status.days_elapsed == 10
    assert status.days_late == 0
    assert not status.is_overdue


def test_completed_record_is_never_overdue():
    status = compute_overdue('completed', NOW - timedelta(days=30), 10, NOW)
    assert status.days_late == 20
    assert not status.is_overdue


def test_days_since_never_negative():
    assert days_since(NOW + timedelta(days=3), NOW) == 0
    assert days_since(None, NOW) == 0
