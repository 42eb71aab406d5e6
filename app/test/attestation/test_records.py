"""
Tests for the employee attestation workflow and per-record admin actions
"""
from datetime import date, datetime

import pytest

from app import db
from app.buisness.attestation.errors import (
    AttestationNotFoundError,
    AttestationPermissionError,
    AttestationValidationError,
    DependencyFailure,
    InvalidStateError,
)
from app.buisness.attestation.record_context import RecordContext
from app.data.attestation.attested_asset import AttestationAsset
from app.data.attestation.new_asset import AttestationNewAsset
from app.data.attestation.record import AttestationRecord
from app.data.core.asset_info.asset import Asset
from app.data.core.audit_log import AuditLog
from app.services.notifications import NotificationKind

NOW = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def alice_record(active_campaign, world):
    record = AttestationRecord.query.filter_by(
        campaign_id=active_campaign.campaign_id, user_id=world['alice'].id
    ).one()
    return RecordContext.from_record(record)


def new_asset_payload(world, **overrides):
    data = {
        'asset_type': 'Monitor',
        'make': 'Dell',
        'model': 'U2720Q',
        'serial_number': 'NEW-0001',
        'asset_tag': 'NTAG-0001',
        'company_id': world['acme'].id,
        'employee_first_name': 'Alice',
        'employee_last_name': 'Able',
        'employee_email': 'alice@example.com',
        'issued_date': '2024-01-15',
    }
    data.update(overrides)
    return data


# ========== Attesting existing assets ==========

def test_attest_unchanged_status_appends_ledger_only(alice_record, world):
    entry = alice_record.attest_asset(world['alice'], world['laptop'].id, 'active', notes='On my desk')

    assert entry.previous_status == 'active'
    assert entry.attested_at == NOW
    assert alice_record.record.status == 'in_progress'
    assert alice_record.record.started_at == NOW
    assert AuditLog.query.filter_by(action='update', entity_type='asset').count() == 0


def test_attest_returned_requires_returned_date(alice_record, world):
    with pytest.raises(AttestationValidationError, match="Returned date is required"):
        alice_record.attest_asset(world['alice'], world['phone'].id, 'returned')
    assert AttestationAsset.query.count() == 0


def test_attest_changed_status_updates_registry(alice_record, world):
    alice_record.attest_asset(world['alice'], world['phone'].id, 'returned', returned_date='2024-02-20')

    phone = db.session.get(Asset, world['phone'].id)
    assert phone.status == 'returned'
    assert phone.returned_date == date(2024, 2, 20)
    audit = AuditLog.query.filter_by(action='update', entity_type='asset').one()
    assert 'from active to returned' in audit.details
    assert audit.user_email == 'alice@example.com'


def test_ledger_entries_are_immutable(alice_record, world):
    entry = alice_record.attest_asset(world['alice'], world['laptop'].id, 'active')
    entry.notes = 'rewritten history'
    with pytest.raises(ValueError, match="immutable"):
        db.session.commit()
    db.session.rollback()
    assert db.session.get(AttestationAsset, entry.id).notes is None


def test_only_the_owner_may_attest(alice_record, world):
    with pytest.raises(AttestationPermissionError):
        alice_record.attest_asset(world['bob'], world['laptop'].id, 'active')
    with pytest.raises(AttestationPermissionError):
        alice_record.attest_asset(world['admin'], world['laptop'].id, 'active')


def test_assets_of_other_owners_cannot_be_attested(alice_record, world):
    with pytest.raises(AttestationPermissionError, match="not assigned"):
        alice_record.attest_asset(world['alice'], world['bob_laptop'].id, 'lost')
    assert world['bob_laptop'].status == 'active'
    assert AttestationAsset.query.count() == 0


def test_unknown_asset_is_not_found(alice_record, world):
    with pytest.raises(AttestationNotFoundError):
        alice_record.attest_asset(world['alice'], 9999, 'active')


def test_records_of_inactive_campaigns_are_read_only(active_campaign, alice_record, world):
    active_campaign.cancel(world['admin'])
    with pytest.raises(InvalidStateError):
        alice_record.attest_asset(world['alice'], world['laptop'].id, 'active')
    with pytest.raises(InvalidStateError):
        alice_record.complete(world['alice'])


# ========== Staging new assets ==========

def test_new_asset_requires_core_fields(alice_record, world):
    alice = world['alice']
    with pytest.raises(AttestationValidationError, match="Asset type, serial number, and asset tag"):
        alice_record.add_new_asset(alice, new_asset_payload(world, asset_tag=''))
    with pytest.raises(AttestationValidationError, match="Employee first name, last name, and email"):
        alice_record.add_new_asset(alice, new_asset_payload(world, employee_email=None))
    with pytest.raises(AttestationValidationError, match="Company is required"):
        alice_record.add_new_asset(alice, new_asset_payload(world, company_id=None))
    with pytest.raises(AttestationValidationError, match="Company not found"):
        alice_record.add_new_asset(alice, new_asset_payload(world, company_id=9999))
    with pytest.raises(AttestationValidationError):
        alice_record.add_new_asset(alice, new_asset_payload(world, employee_email='not-an-email'))
    assert AttestationNewAsset.query.count() == 0


def test_new_asset_is_staged_not_created(alice_record, world):
    entry = alice_record.add_new_asset(world['alice'], new_asset_payload(world))

    assert entry.issued_date == date(2024, 1, 15)
    assert not entry.is_promoted
    assert Asset.query.filter_by(serial_number='NEW-0001').count() == 0
    assert alice_record.record.status == 'in_progress'


# ========== Completion ==========

def test_complete_promotes_staged_assets_and_notifies_admins(alice_record, world, dispatcher):
    alice = world['alice']
    alice_record.add_new_asset(alice, new_asset_payload(world))

    result = alice_record.complete(alice)

    assert result.promotion.success_count == 1
    assert result.admin_notified is True
    assert alice_record.record.status == 'completed'
    assert alice_record.record.completed_at == NOW

    asset = Asset.query.filter_by(serial_number='NEW-0001').one()
    assert asset.status == 'active'
    assert asset.created_by_id == alice.id
    entry = AttestationNewAsset.query.one()
    assert entry.promoted_asset_id == asset.id
    assert entry.promoted_at == NOW

    assert dispatcher.recipients(NotificationKind.COMPLETION_ADMIN) == ['admin@example.com']


def test_promotion_failure_is_kept_and_retried(alice_record, world, dispatcher, clock):
    alice = world['alice']
    alice_record.add_new_asset(alice, new_asset_payload(world))
    # Same serial number as an asset already in the registry
    alice_record.add_new_asset(alice, new_asset_payload(
        world, serial_number=world['laptop'].serial_number, asset_tag='NTAG-0002'
    ))

    first = alice_record.complete(alice)
    assert first.promotion.success_count == 1
    assert first.promotion.failure_count == 1
    assert alice_record.record.status == 'completed', "Promotion failures do not block completion"

    failed = AttestationNewAsset.query.filter_by(asset_tag='NTAG-0002').one()
    assert failed.promotion_error
    assert not failed.is_promoted
    assert AuditLog.query.filter_by(action='promotion_failed').count() == 1

    # Clear the conflict and complete again
    db.session.delete(db.session.get(Asset, world['laptop'].id))
    db.session.commit()
    clock.advance(hours=2)

    second = alice_record.complete(alice)
    assert second.promotion.success_count == 1
    assert second.promotion.failure_count == 0
    assert second.admin_notified is False, "Admins are told only about the first completion"
    assert alice_record.record.completed_at == NOW

    assert Asset.query.filter_by(serial_number='NEW-0001').count() == 1, "Promoted entries are not promoted twice"
    assert AttestationNewAsset.query.filter_by(asset_tag='NTAG-0002').one().promotion_error is None
    assert len(dispatcher.of_kind(NotificationKind.COMPLETION_ADMIN)) == 1


# ========== Reads ==========

def test_detail_visible_to_owner_and_admin_only(alice_record, world):
    detail = alice_record.detail(world['alice'])
    assert [a['id'] for a in detail['assets']] == [world['laptop'].id, world['phone'].id]
    assert detail['campaign']['status'] == 'active'

    assert alice_record.detail(world['admin'])['record']['id'] == alice_record.record_id
    with pytest.raises(AttestationPermissionError):
        alice_record.detail(world['bob'])
    with pytest.raises(AttestationPermissionError):
        alice_record.detail(world['coordinator'])


def test_detail_limits_assets_to_target_companies(make_campaign, world):
    world['phone'].company_id = world['globex'].id
    db.session.commit()
    ctx = make_campaign(target_type='companies', target_company_ids=[world['globex'].id])
    ctx.start(world['admin'])

    record = AttestationRecord.query.filter_by(campaign_id=ctx.campaign_id, user_id=world['alice'].id).one()
    detail = RecordContext.from_record(record).detail(world['alice'])
    assert [a['id'] for a in detail['assets']] == [world['phone'].id], \
        "Assets outside the target companies are hidden"


def test_my_attestations_lists_active_campaigns_only(active_campaign, world):
    mine = RecordContext.my_attestations(world['alice'])
    assert len(mine) == 1
    assert mine[0]['campaign']['name'] == 'Q1 Asset Attestation'
    assert mine[0]['is_overdue'] is False

    active_campaign.complete(world['admin'])
    assert RecordContext.my_attestations(world['alice']) == []


# ========== Reminders and escalations ==========

def test_remind_sends_and_stamps(alice_record, world, dispatcher):
    alice_record.remind(world['coordinator'])

    assert dispatcher.recipients(NotificationKind.REMINDER) == ['alice@example.com']
    assert alice_record.record.reminder_sent_at == NOW
    assert AuditLog.query.filter_by(action='reminder_sent').one().user_email == 'coord@example.com'


def test_remind_failure_is_a_dependency_failure(alice_record, world, dispatcher):
    dispatcher.fail_for.add('alice@example.com')
    with pytest.raises(DependencyFailure):
        alice_record.remind(world['coordinator'])
    assert alice_record.record.reminder_sent_at is None


def test_escalate_requires_a_manager(active_campaign, world):
    record = AttestationRecord.query.filter_by(user_id=world['bob'].id).one()
    with pytest.raises(AttestationValidationError, match="does not have a manager"):
        RecordContext.from_record(record).escalate(world['admin'])
    assert record.escalation_sent_at is None, "A refused escalation leaves no stamp"


def test_escalate_notifies_manager_with_message(alice_record, world, dispatcher):
    alice_record.escalate(world['admin'], custom_message='Please follow up\r\nthis week')

    mail = dispatcher.of_kind(NotificationKind.ESCALATION)[0]
    assert mail.recipients == ['mona@example.com']
    assert 'Alice Able (alice@example.com)' in mail.body
    assert alice_record.record.escalation_sent_at == NOW
    audit = AuditLog.query.filter_by(action='escalation_sent').one()
    assert audit.details.endswith('Message: Please follow up this week')
