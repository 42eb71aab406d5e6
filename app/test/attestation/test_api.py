"""
HTTP tests for the attestation blueprint and the login endpoint
"""
import logging

import pytest

from app.data.attestation.pending_invite import AttestationPendingInvite
from app.data.attestation.record import AttestationRecord
from app.services.notifications import NotificationKind


def campaign_payload(**overrides):
    data = {
        'name': 'Q2 Asset Attestation',
        'start_date': '2024-03-05',
        'target_type': 'all',
    }
    data.update(overrides)
    return data


@pytest.fixture
def started_campaign_id(client, login_as, world):
    login_as('admin@example.com')
    created = client.post('/attestation/campaigns', json=campaign_payload())
    campaign_id = created.get_json()['campaign_id']
    client.post(f'/attestation/campaigns/{campaign_id}/start')
    return campaign_id


# ========== Authentication ==========

def test_api_requires_login(client, world):
    response = client.get('/attestation/campaigns')
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Authentication required'}


def test_login_rejects_bad_credentials(client, login_as, make_user):
    make_user('off@example.com', is_active=False)
    assert login_as('alice@example.com', 'wrong').status_code == 401
    assert login_as('off@example.com').status_code == 403
    assert client.post('/login', json={'email': 'off@example.com'}).status_code == 400


def test_login_payload_is_logged_without_the_password(client, world, caplog):
    caplog.set_level(logging.DEBUG, logger='asset_attestation.auth')
    client.post('/login', json={'email': 'alice@example.com', 'password': 'Hunter2-not-mine'})
    client.post('/login', data={'email': 'alice@example.com', 'password': 'Hunter2-not-mine'})

    assert 'Hunter2-not-mine' not in caplog.text
    assert "'password': '[REDACTED]'" in caplog.text


def test_login_is_case_insensitive_and_stamps_last_login(login_as, world):
    response = login_as('ALICE@example.com')
    assert response.status_code == 200
    body = response.get_json()
    assert body['user']['email'] == 'alice@example.com'
    assert 'password_hash' not in body['user']
    assert body['user']['last_login'] == '2024-03-01T09:00:00'


def test_employee_cannot_manage_campaigns(client, login_as, world):
    login_as('alice@example.com')
    assert client.get('/attestation/campaigns').status_code == 403
    assert client.post('/attestation/campaigns', json=campaign_payload()).status_code == 403


def test_manager_can_view_but_not_start(client, login_as, make_user, started_campaign_id):
    make_user('manager@example.com', role='manager')
    login_as('manager@example.com')
    assert client.get(f'/attestation/campaigns/{started_campaign_id}/dashboard').status_code == 200
    assert client.post(f'/attestation/campaigns/{started_campaign_id}/cancel').status_code == 403


# ========== Campaign endpoints ==========

def test_campaign_lifecycle_over_http(client, login_as, world, dispatcher):
    login_as('coord@example.com')

    created = client.post('/attestation/campaigns', json=campaign_payload(description='Quarterly check'))
    assert created.status_code == 201
    campaign_id = created.get_json()['campaign_id']

    started = client.post(f'/attestation/campaigns/{campaign_id}/start')
    assert started.status_code == 200
    body = started.get_json()
    assert body['records_created'] == 4
    assert body['invites_created'] == 1
    assert body['invite_emails_sent'] == 1

    detail = client.get(f'/attestation/campaigns/{campaign_id}').get_json()
    assert detail['campaign']['status'] == 'active'
    assert detail['stats']['total'] == 4

    invites = client.get(f'/attestation/campaigns/{campaign_id}/pending-invites').get_json()
    assert [i['employee_email'] for i in invites['pending_invites']] == ['dave@example.com']
    assert 'invite_token' not in invites['pending_invites'][0]

    listed = client.get('/attestation/campaigns').get_json()['campaigns']
    assert listed[0]['pending_invites_count'] == 1

    again = client.post(f'/attestation/campaigns/{campaign_id}/start')
    assert again.status_code == 400
    assert again.get_json()['type'] == 'InvalidStateError'

    assert client.post(f'/attestation/campaigns/{campaign_id}/cancel', json={'reason': 'test'}).status_code == 200
    locked = client.put(f'/attestation/campaigns/{campaign_id}', json={'name': 'Renamed'})
    assert locked.status_code == 400


def test_unknown_campaign_is_404(client, login_as, world):
    login_as('admin@example.com')
    response = client.get('/attestation/campaigns/9999')
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Campaign not found', 'type': 'AttestationNotFoundError'}


def test_invalid_payload_is_400(client, login_as, world):
    login_as('admin@example.com')
    response = client.post('/attestation/campaigns', json=campaign_payload(target_type='companies'))
    assert response.status_code == 400
    assert 'target_company_ids is required' in response.get_json()['error']


def test_resend_and_bulk_remind(client, started_campaign_id, world, dispatcher):
    invite = AttestationPendingInvite.query.one()
    resent = client.post(f'/attestation/campaigns/{started_campaign_id}/resend-invites',
                         json={'invite_ids': [invite.id]})
    assert resent.get_json()['emails_sent'] == 1

    record_ids = [r.id for r in AttestationRecord.query.filter_by(campaign_id=started_campaign_id)]
    reminded = client.post(f'/attestation/campaigns/{started_campaign_id}/bulk-remind',
                           json={'record_ids': record_ids}).get_json()
    assert reminded['sent'] == 4
    assert reminded['failed'] == 0

    missing = client.post(f'/attestation/campaigns/{started_campaign_id}/bulk-remind', json={})
    assert missing.status_code == 400


def test_remind_delivery_failure_is_502(client, started_campaign_id, world, dispatcher):
    dispatcher.fail_for.add('bob@example.com')
    record = AttestationRecord.query.filter_by(user_id=world['bob'].id).one()
    response = client.post(f'/attestation/records/{record.id}/remind')
    assert response.status_code == 502
    assert response.get_json()['type'] == 'DependencyFailure'


def test_run_tasks(client, started_campaign_id, clock):
    clock.advance(days=7)
    response = client.post('/attestation/tasks/run')
    assert response.status_code == 200
    assert response.get_json()['results']['reminders'] == {'succeeded': 4, 'failed': 0}


# ========== Employee endpoints ==========

def test_employee_attestation_over_http(client, login_as, started_campaign_id, world, dispatcher):
    login_as('alice@example.com')

    mine = client.get('/attestation/my-attestations').get_json()['attestations']
    assert len(mine) == 1
    record_id = mine[0]['id']

    detail = client.get(f'/attestation/records/{record_id}').get_json()
    assert len(detail['assets']) == 2

    attested = client.put(f"/attestation/records/{record_id}/assets/{world['laptop'].id}",
                          json={'attested_status': 'active', 'notes': 'ok'})
    assert attested.status_code == 200

    staged = client.post(f'/attestation/records/{record_id}/assets/new', json={
        'asset_type': 'Dock', 'serial_number': 'DOCK-1', 'asset_tag': 'DT-1',
        'company_id': world['acme'].id, 'employee_first_name': 'Alice',
        'employee_last_name': 'Able', 'employee_email': 'alice@example.com',
    })
    assert staged.status_code == 201

    completed = client.post(f'/attestation/records/{record_id}/complete').get_json()
    assert completed['promoted'] == 1
    assert completed['admin_notified'] is True

    login_as('bob@example.com')
    assert client.get(f'/attestation/records/{record_id}').status_code == 403
    assert client.post(f'/attestation/records/{record_id}/escalate').status_code == 403


def test_invite_registration_flow(client, login_as, make_user, started_campaign_id):
    client.post('/logout')
    invite = AttestationPendingInvite.query.one()

    check = client.get(f'/attestation/validate-invite/{invite.invite_token}')
    assert check.status_code == 200
    assert check.get_json()['valid'] is True

    dave = make_user('dave@example.com', first_name='Dave', last_name='Doe')
    body = login_as('dave@example.com').get_json()

    record = AttestationRecord.query.filter_by(user_id=dave.id).one()
    assert body['converted_record_ids'] == [record.id]
    assert client.get(f'/attestation/validate-invite/{invite.invite_token}').get_json() == {
        'valid': False, 'error': 'Invite has already been used',
    }
