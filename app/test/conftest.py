"""
Pytest configuration and fixtures for the attestation service tests

Every test gets a fresh in-memory database, a dispatcher that records what
would have been sent, and a clock fixed at NOW.
"""
import threading
from datetime import datetime, date

import pytest

from app import create_app
from app import db as _db
from app.buisness.attestation.clock import FixedClock
from app.data.core.asset_info.asset import Asset
from app.data.core.company_info.company import Company
from app.data.core.user_info.user import User
from app.services.notifications import NotificationDispatcher

NOW = datetime(2024, 3, 1, 9, 0, 0)
PASSWORD = 'Attest-Secret-123!'


class RecordingDispatcher(NotificationDispatcher):
    """Keeps every delivered notification; addresses in fail_for raise on delivery"""

    def __init__(self):
        super().__init__(frontend_url='https://attest.example.com', sender='attestation@example.com')
        self.sent = []
        self.fail_for = set()
        self._lock = threading.Lock()

    def _deliver(self, notification):
        if any(address in self.fail_for for address in notification.recipients):
            raise ConnectionError(f"SMTP refused {notification.recipients}")
        with self._lock:
            self.sent.append(notification)

    def of_kind(self, kind):
        return [n for n in self.sent if n.kind == kind]

    def recipients(self, kind=None):
        return sorted(address for n in self.sent if kind is None or n.kind == kind for address in n.recipients)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def app(dispatcher, clock):
    """Create Flask application for testing"""
    app = create_app({
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'SESSION_COOKIE_SECURE': False,
        'NOTIFICATION_DISPATCHER': dispatcher,
        'ATTESTATION_CLOCK': clock,
        'ATTESTATION_NOTIFY_WORKERS': 2,
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email, role='employee', first_name='Test', last_name='User',
                   manager_email=None, is_active=True, password=PASSWORD):
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            manager_email=manager_email,
            manager_first_name='Mona' if manager_email else None,
            manager_last_name='Manager' if manager_email else None,
            is_active=is_active,
        )
        user.set_password(password)
        _db.session.add(user)
        _db.session.commit()
        return user
    return _make_user


@pytest.fixture
def make_company(app):
    def _make_company(name):
        company = Company(name=name)
        _db.session.add(company)
        _db.session.commit()
        return company
    return _make_company


@pytest.fixture
def make_asset(app):
    counter = {'n': 0}

    def _make_asset(owner_email, company=None, status=Asset.STATUS_ACTIVE, first_name='Owner',
                    last_name='Person', manager_email=None, serial_number=None):
        counter['n'] += 1
        asset = Asset(
            employee_email=owner_email,
            employee_first_name=first_name,
            employee_last_name=last_name,
            manager_email=manager_email,
            manager_first_name='Mona' if manager_email else None,
            manager_last_name='Manager' if manager_email else None,
            company_id=company.id if company else None,
            asset_type='Laptop',
            make='Lenovo',
            model='T14',
            serial_number=serial_number or f"SN-{counter['n']:04d}",
            asset_tag=f"TAG-{counter['n']:04d}",
            status=status,
            issued_date=date(2023, 1, 10),
        )
        _db.session.add(asset)
        _db.session.commit()
        return asset
    return _make_asset


@pytest.fixture
def admin(make_user):
    return make_user('admin@example.com', role='admin', first_name='Ada', last_name='Admin')


@pytest.fixture
def login_as(client):
    """Log the test client in; returns the login response"""
    def _login(email, password=PASSWORD):
        return client.post('/login', json={'email': email, 'password': password})
    return _login
