"""
Shared registry state for attestation tests
"""
import pytest

from app.buisness.attestation.campaign_context import CampaignContext


@pytest.fixture
def world(admin, make_user, make_company, make_asset):
    """
    Two companies, an admin, a coordinator, two employees with accounts and
    one asset owner without an account.
    """
    acme = make_company('Acme')
    globex = make_company('Globex')
    coordinator = make_user('coord@example.com', role='attestation_coordinator', first_name='Cora')
    alice = make_user('alice@example.com', first_name='Alice', last_name='Able', manager_email='mona@example.com')
    bob = make_user('bob@example.com', first_name='Bob', last_name='Baker')
    laptop = make_asset('alice@example.com', acme)
    phone = make_asset('alice@example.com', acme)
    bob_laptop = make_asset('bob@example.com', globex)
    dave_laptop = make_asset('dave@example.com', acme, first_name='Dave', last_name='Doe',
                             manager_email='mona@example.com')
    return {
        'acme': acme,
        'globex': globex,
        'admin': admin,
        'coordinator': coordinator,
        'alice': alice,
        'bob': bob,
        'laptop': laptop,
        'phone': phone,
        'bob_laptop': bob_laptop,
        'dave_laptop': dave_laptop,
    }


@pytest.fixture
def make_campaign(world):
    def _make_campaign(**overrides):
        data = {
            'name': 'Q1 Asset Attestation',
            'description': 'Confirm the equipment you hold',
            'start_date': '2024-03-05T00:00:00Z',
            'target_type': 'all',
        }
        data.update(overrides)
        return CampaignContext.create(data, world['admin'])
    return _make_campaign


@pytest.fixture
def active_campaign(make_campaign, world):
    """An 'all' campaign started at NOW: records for every user, one invite for dave"""
    ctx = make_campaign()
    ctx.start(world['admin'])
    return ctx
