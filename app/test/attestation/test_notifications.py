"""
Tests for notification composition, validation and SMTP delivery
"""
import logging
import smtplib
from datetime import datetime

from app.buisness.attestation.fanout import NotificationJob, dispatch_all
from app.services.notifications import (
    CampaignSnapshot,
    LoggingNotificationDispatcher,
    NotificationKind,
    SmtpNotificationDispatcher,
    build_dispatcher,
)
from app.services.notifications.templates import compose_message

CAMPAIGN = CampaignSnapshot(
    id=1, name='Q1 Asset Attestation', description='Confirm your equipment',
    start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 31),
)


class FakeSMTP:
    """Stands in for smtplib.SMTP; fails the first `failures` connections"""
    failures = 0
    sent = []

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.failures:
            FakeSMTP.failures -= 1
            raise smtplib.SMTPConnectError(421, b'busy')

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def test_invite_message_links_to_registration():
    subject, body = compose_message(
        NotificationKind.INVITE, CAMPAIGN, 'https://attest.example.com',
        first_name='Dave', last_name='Doe', invite_token='abc123', asset_count=2,
    )
    assert 'Q1 Asset Attestation' in subject
    assert body.startswith('Hello Dave Doe,')
    assert 'https://attest.example.com/register?invite=abc123' in body
    assert 'Please complete by: 2024-03-31' in body


def test_launch_message_links_to_my_attestations():
    _, body = compose_message(NotificationKind.LAUNCH, CAMPAIGN, 'https://attest.example.com')
    assert 'https://attest.example.com/my-attestations' in body


def test_dispatcher_rejects_invalid_input(dispatcher):
    assert not dispatcher.send('carrier_pigeon', 'a@example.com', CAMPAIGN).success
    assert not dispatcher.send(NotificationKind.LAUNCH, [], CAMPAIGN).success
    result = dispatcher.send(NotificationKind.LAUNCH, 'not-an-address', CAMPAIGN)
    assert not result.success
    assert result.error.startswith('invalid')
    assert dispatcher.sent == []


def test_missing_template_value_is_a_failed_send(dispatcher):
    result = dispatcher.send(NotificationKind.ESCALATION, 'mona@example.com', CAMPAIGN)
    assert not result.success


def test_dispatch_all_collects_per_job_outcomes(dispatcher):
    dispatcher.fail_for.add('bob@example.com')
    jobs = [
        NotificationJob(key, NotificationKind.REMINDER, f'{name}@example.com', CAMPAIGN)
        for key, name in ((1, 'alice'), (2, 'bob'), (3, 'carol'))
    ]

    result = dispatch_all(dispatcher, jobs, max_workers=3)

    assert sorted(result.succeeded) == [1, 3]
    assert [key for key, _ in result.failed] == [2]


def test_build_dispatcher_without_smtp_host_logs_only():
    dispatcher = build_dispatcher({'FRONTEND_URL': 'https://attest.example.com/'})
    assert isinstance(dispatcher, LoggingNotificationDispatcher)
    assert dispatcher.frontend_url == 'https://attest.example.com'
    assert dispatcher.send(NotificationKind.LAUNCH, 'alice@example.com', CAMPAIGN).success


def test_smtp_dispatcher_retries_then_sends(monkeypatch):
    monkeypatch.setattr(smtplib, 'SMTP', FakeSMTP)
    monkeypatch.setattr(FakeSMTP, 'failures', 1)
    monkeypatch.setattr(FakeSMTP, 'sent', [])
    dispatcher = SmtpNotificationDispatcher('smtp.example.com', smtp_user='u', smtp_pass='p',
                                            sender='attestation@example.com', retry_backoff=0)

    result = dispatcher.send(NotificationKind.REMINDER, 'alice@example.com', CAMPAIGN)

    assert result.success
    assert len(FakeSMTP.sent) == 1
    assert FakeSMTP.sent[0]['To'] == 'alice@example.com'


def test_smtp_dispatcher_gives_up_after_retries(monkeypatch):
    monkeypatch.setattr(smtplib, 'SMTP', FakeSMTP)
    monkeypatch.setattr(FakeSMTP, 'failures', 5)
    monkeypatch.setattr(FakeSMTP, 'sent', [])
    dispatcher = SmtpNotificationDispatcher('smtp.example.com', retry_attempts=2, retry_backoff=0)

    result = dispatcher.send(NotificationKind.REMINDER, 'alice@example.com', CAMPAIGN)

    assert not result.success
    assert FakeSMTP.sent == []


def test_logging_dispatcher_hides_invite_tokens(caplog):
    caplog.set_level(logging.DEBUG, logger='asset_attestation.services.notifications.outbox')
    dispatcher = LoggingNotificationDispatcher(frontend_url='https://attest.example.com')

    result = dispatcher.send(
        NotificationKind.INVITE, 'dave@example.com', CAMPAIGN,
        first_name='Dave', last_name='Doe', invite_token='f00dcafe' * 8, asset_count=1,
    )

    assert result.success
    assert 'f00dcafe' not in caplog.text
    assert '/register?invite=[REDACTED]' in caplog.text
