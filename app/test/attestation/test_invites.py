"""
Tests for pending invites: token validation, resend and conversion at first login
"""
from datetime import datetime, timedelta

import pytest

from app import db
from app.buisness.attestation.errors import DependencyFailure, InvalidStateError
from app.buisness.attestation.invite_manager import InviteManager
from app.data.attestation.pending_invite import AttestationPendingInvite
from app.data.attestation.record import AttestationRecord
from app.data.core.audit_log import AuditLog
from app.services.notifications import NotificationKind

NOW = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def invite(active_campaign):
    return AttestationPendingInvite.query.filter_by(campaign_id=active_campaign.campaign_id).one()


# ========== Token validation ==========

def test_validate_token_describes_the_invite(invite):
    result = InviteManager().validate_token(invite.invite_token).to_dict()

    assert result['valid'] is True
    assert result['email'] == 'dave@example.com'
    assert result['first_name'] == 'Dave'
    assert result['campaign_name'] == 'Q1 Asset Attestation'
    assert result['asset_count'] == 1


def test_validate_unknown_token(invite):
    assert InviteManager().validate_token('no-such-token').to_dict() == {
        'valid': False, 'error': 'Invalid invite token',
    }


def test_validate_token_of_inactive_campaign(active_campaign, invite, world):
    active_campaign.cancel(world['admin'])
    result = InviteManager().validate_token(invite.invite_token)
    assert not result.valid
    assert result.error == 'Campaign is no longer active'


def test_tokens_are_unique_and_long(invite):
    tokens = {InviteManager.generate_token() for _ in range(50)}
    assert len(tokens) == 50
    assert len(invite.invite_token) == 64


# ========== Conversion ==========

def test_conversion_creates_record_and_marks_invite(invite, make_user):
    dave = make_user('Dave@Example.com', first_name='Dave', last_name='Doe')

    result = InviteManager().convert_for_user(dave)

    record = AttestationRecord.query.filter_by(user_id=dave.id).one()
    assert result.succeeded == [record.id]
    assert record.status == 'pending'

    converted = db.session.get(AttestationPendingInvite, invite.id)
    assert converted.registered_at == NOW
    assert converted.converted_record_id == record.id
    assert AuditLog.query.filter_by(action='convert_invite').one().user_email == 'Dave@Example.com'

    assert InviteManager().validate_token(converted.invite_token).error == 'Invite has already been used'
    assert InviteManager().convert_for_user(dave).succeeded == [], "A converted invite is not converted again"


def test_conversion_reuses_existing_record(active_campaign, invite, make_user):
    dave = make_user('dave@example.com')
    existing = AttestationRecord(campaign_id=active_campaign.campaign_id, user_id=dave.id, status='pending')
    db.session.add(existing)
    db.session.commit()

    result = InviteManager().convert_for_user(dave)

    assert result.succeeded == [existing.id]
    assert AttestationRecord.query.filter_by(user_id=dave.id).count() == 1
    assert db.session.get(AttestationPendingInvite, invite.id).converted_record_id == existing.id


def test_conversion_skips_inactive_campaigns(active_campaign, invite, make_user, world):
    active_campaign.complete(world['admin'])
    dave = make_user('dave@example.com')

    result = InviteManager().convert_for_user(dave)

    assert result.succeeded == []
    assert result.failed == []
    assert AttestationRecord.query.filter_by(user_id=dave.id).count() == 0
    assert not db.session.get(AttestationPendingInvite, invite.id).is_converted


# ========== Resend ==========

def test_resend_restamps_invite(invite, world, dispatcher, clock):
    later = clock.advance(days=2)
    InviteManager().resend(invite.id, world['admin'])

    assert len(dispatcher.of_kind(NotificationKind.INVITE)) == 2
    assert db.session.get(AttestationPendingInvite, invite.id).invite_sent_at == later
    assert AuditLog.query.filter_by(action='resend_invite').count() == 1


def test_resend_failure_is_a_dependency_failure(invite, world, dispatcher):
    dispatcher.fail_for.add('dave@example.com')
    with pytest.raises(DependencyFailure):
        InviteManager().resend(invite.id, world['admin'])
    assert db.session.get(AttestationPendingInvite, invite.id).invite_sent_at == NOW


def test_resend_rejects_converted_invites(invite, make_user, world):
    InviteManager().convert_for_user(make_user('dave@example.com'))
    with pytest.raises(InvalidStateError, match="already registered"):
        InviteManager().resend(invite.id, world['admin'])


def test_resend_requires_active_campaign(active_campaign, invite, world):
    active_campaign.cancel(world['admin'])
    with pytest.raises(InvalidStateError):
        InviteManager().resend(invite.id, world['admin'])
    with pytest.raises(InvalidStateError):
        InviteManager().resend_for_campaign(active_campaign.campaign_id, world['admin'])


def test_resend_for_campaign_reports_unknown_ids(active_campaign, invite, world, clock):
    clock.advance(days=1)
    result = InviteManager().resend_for_campaign(
        active_campaign.campaign_id, world['admin'], invite_ids=[invite.id, 9999]
    )

    assert result.succeeded == [invite.id]
    assert [item for item, _ in result.failed] == [9999]
    assert db.session.get(AttestationPendingInvite, invite.id).invite_sent_at == NOW + timedelta(days=1)
