"""
Unit tests for valuation.py
"""

import pytest

from corpsim.core.errors import InvalidInput
from corpsim.services.economy.valuation import ValuationService, compute_share_price


def test_book_value_only(test_settings):
    # 1,000,000 / 100,000 = 10 book; 0.6 weight
    assert compute_share_price(1_000_000, 100_000, 0.0, test_settings) == 6.0


def test_earnings_component(test_settings):
    # earnings = 10,000 x 24 / 100,000 = 2.4 → 0.6 x 10 + 0.4 x 2.4
    assert compute_share_price(1_000_000, 100_000, 10_000, test_settings) == pytest.approx(6.96)


def test_losses_do_not_reduce_price_below_book(test_settings):
    assert compute_share_price(1_000_000, 100_000, -50_000, test_settings) == 6.0


def test_floor_applies(test_settings):
    assert compute_share_price(0, 100_000, -1, test_settings) == test_settings.MIN_SHARE_PRICE


def test_non_positive_shares_rejected(test_settings):
    with pytest.raises(InvalidInput):
        compute_share_price(1000, 0, 0, test_settings)


def test_update_stock_price_persists(store, seed, test_settings):
    corp_id = seed.corporation("Acme", capital=1_000_000, shares=100_000, last_profit=10_000)
    service = ValuationService(store, test_settings)

    price = service.update_stock_price(corp_id)

    assert price == pytest.approx(6.96)
    assert store.find_corporation_by_id(corp_id).share_price == pytest.approx(6.96)


def test_update_stock_price_explicit_profit(store, seed, test_settings):
    corp_id = seed.corporation("Acme", capital=1_000_000, shares=100_000, last_profit=10_000)

    assert ValuationService(store, test_settings).update_stock_price(corp_id, recent_profit=0) == 6.0


def test_update_stock_price_unknown_corporation(store, test_settings):
    with pytest.raises(InvalidInput):
        ValuationService(store, test_settings).update_stock_price(404)
