"""
Tests for dividends.py: daily payout rules and all-or-nothing payment.
"""

import pytest
from sqlalchemy import select

from corpsim.models import Transaction
from corpsim.services.economy.dividends import DividendService, dividend_total
from corpsim.services.economy.types import CorporationRecord
from tests.conftest import FIXED_NOW


@pytest.fixture
def dividends(store, test_settings):
    return DividendService(store, test_settings)


def _corp(**kwargs):
    defaults = dict(id=1, name="X", capital=1_000_000.0, shares=1000, share_price=1.0, dividend_percentage=5.0)
    defaults.update(kwargs)
    return CorporationRecord(**defaults)


# Payout rules
def test_total_is_percentage_of_capital(test_settings):
    assert dividend_total(_corp(), test_settings) == 50_000.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"dividend_percentage": 0.0},
        {"capital": 99_999.0},
        {"shares": 0},
        {"shares": 10_000_000, "dividend_percentage": 0.5},  # 5,000 over 10M shares < 1 cent
    ],
)
def test_corporations_that_pay_nothing(test_settings, overrides):
    assert dividend_total(_corp(**overrides), test_settings) is None


# Job
def test_pays_holders_pro_rata(dividends, store, seed, session_factory):
    alice = seed.user("alice")
    bob = seed.user("bob")
    corp = seed.corporation("Payer", capital=1_000_000.0, shares=1000, dividend_percentage=5.0)
    seed.shareholder(corp, alice, 600)
    seed.shareholder(corp, bob, 100)

    data = dividends.pay_all(FIXED_NOW)

    assert data["corporations_paid"] == 1
    assert data["total_paid"] == 50_000.0
    # the 300-share public float is paid out but credited to nobody
    assert data["paid_to_shareholders"] == 35_000.0
    assert store.find_corporation_by_id(corp).capital == 950_000.0
    assert store.find_user_by_id(alice).cash == 30_000.0
    assert store.find_user_by_id(bob).cash == 5_000.0

    with session_factory() as session:
        rows = session.scalars(select(Transaction).where(Transaction.transaction_type == "dividend")).all()
    assert sorted(r.amount for r in rows) == [5_000.0, 30_000.0, 50_000.0]


def test_corporations_without_policy_skipped(dividends, store, seed):
    corp = seed.corporation("Miser", capital=5_000_000.0)

    data = dividends.pay_all(FIXED_NOW)

    assert data["corporations_paid"] == 0
    assert store.find_corporation_by_id(corp).capital == 5_000_000.0


def test_capital_drop_between_read_and_pay_moves_nothing(dividends, store, seed, monkeypatch):
    holder = seed.user("holder")
    corp = seed.corporation("Payer", capital=1_000_000.0, shares=1000, dividend_percentage=5.0)
    seed.shareholder(corp, holder, 500)

    stale = store.find_all_corporations()
    store.add_capital(corp, -990_000.0)
    monkeypatch.setattr(store, "find_all_corporations", lambda: stale)

    data = dividends.pay_all(FIXED_NOW)

    assert data["skipped_insufficient_capital"] == 1
    assert store.find_corporation_by_id(corp).capital == 10_000.0
    assert store.find_user_by_id(holder).cash == 0.0


def test_one_failure_does_not_stop_others(dividends, store, seed, monkeypatch):
    first = seed.corporation("First", capital=1_000_000.0, shares=1000, dividend_percentage=1.0)
    second = seed.corporation("Second", capital=1_000_000.0, shares=1000, dividend_percentage=1.0)
    real_pay = store.pay_dividend

    def flaky_pay(corporation_id, total, now, **kwargs):
        if corporation_id == first:
            raise RuntimeError("lock timeout")
        return real_pay(corporation_id, total, now, **kwargs)

    monkeypatch.setattr(store, "pay_dividend", flaky_pay)

    data = dividends.pay_all(FIXED_NOW)

    assert data["failed"] == [first]
    assert data["corporations_paid"] == 1
    assert store.find_corporation_by_id(second).capital == 990_000.0
