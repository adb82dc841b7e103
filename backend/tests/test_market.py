"""
Tests for market.py: snapshot pricing and the market-revenue cycle.
"""

import pytest
from sqlalchemy import select

from corpsim.models import Transaction
from corpsim.services.economy.market import (
    MarketService,
    boost_multiplier,
    build_market_snapshot,
    corporation_profit,
)
from corpsim.services.economy.sector_config import SectorConfigService, default_sector_config
from corpsim.services.economy.valuation import ValuationService
from tests.conftest import FIXED_NOW


@pytest.fixture
def market(store, test_settings, clock):
    config_service = SectorConfigService(store, clock)
    return MarketService(store, config_service, ValuationService(store, test_settings), test_settings)


@pytest.fixture
def oil_chain(seed):
    """Driller extracts oil; PowerCo burns it into electricity."""
    driller = seed.corporation("Driller", capital=1_000_000.0, shares=100_000)
    power = seed.corporation("PowerCo", capital=1_000_000.0, shares=100_000)
    idle = seed.corporation("Idle", capital=500.0)
    seed.units(driller, "extraction", "Energy", 10)
    seed.units(power, "production", "Energy", 4)
    return {"driller": driller, "power": power, "idle": idle}


# Snapshot
def test_snapshot_prices_every_configured_name():
    config = default_sector_config()
    snapshot = build_market_snapshot({"extraction": {"Energy": 10}}, config)

    assert set(snapshot.commodities) == set(config.resource_names())
    assert set(snapshot.products) == set(config.product_names())
    # 20 oil supplied, none demanded → floor factor
    assert snapshot.commodities["Oil"].scarcity_factor == pytest.approx(0.25)
    assert snapshot.commodities["Oil"].supply == pytest.approx(20.0)


def test_corporation_profit_formula():
    config = default_sector_config()
    units = {"production": {"Energy": 4}}
    snapshot = build_market_snapshot(units, config)

    breakdown = corporation_profit(units, config, snapshot)

    assert breakdown.output_revenue == pytest.approx(4 * snapshot.price_of("Electricity"))
    assert breakdown.input_cost == pytest.approx(4 * 0.5 * snapshot.price_of("Oil"))
    assert breakdown.operating_cost == pytest.approx(4 * 400.0)
    assert breakdown.base_revenue == 0.0


def test_retail_units_earn_base_revenue():
    config = default_sector_config()
    units = {"retail": {"Retail": 2}}
    snapshot = build_market_snapshot(units, config)

    breakdown = corporation_profit(units, config, snapshot)

    assert breakdown.base_revenue == pytest.approx(2 * 1500.0)
    assert breakdown.operating_cost == pytest.approx(2 * 250.0)


# Revenue cycle
def test_revenue_cycle_applies_profit(market, store, oil_chain):
    snapshot = market.snapshot()
    oil = snapshot.price_of("Oil")
    expected_driller = round(10 * 2.0 * oil - 10 * 500.0, 2)

    data = market.run_revenue_cycle(FIXED_NOW)

    assert data["corporations_processed"] == 2
    assert data["failed"] == []
    driller = store.find_corporation_by_id(oil_chain["driller"])
    assert driller.last_profit == pytest.approx(expected_driller)
    assert driller.capital == pytest.approx(1_000_000.0 + expected_driller)


def test_revenue_cycle_skips_corporations_without_units(market, store, oil_chain):
    market.run_revenue_cycle(FIXED_NOW)

    idle = store.find_corporation_by_id(oil_chain["idle"])
    assert idle.capital == 500.0
    assert idle.last_profit == 0.0


def test_revenue_cycle_clamps_capital_at_zero(market, store, seed):
    broke = seed.corporation("Broke", capital=100.0)
    seed.units(broke, "extraction", "Forestry", 5)  # operating cost dwarfs lumber sales

    market.run_revenue_cycle(FIXED_NOW)

    corp = store.find_corporation_by_id(broke)
    assert corp.capital == 0.0
    assert corp.last_profit < 0
    assert corp.share_price == 0.01


def test_revenue_cycle_revalues_and_records(market, store, session_factory, oil_chain):
    market.run_revenue_cycle(FIXED_NOW)

    prices = {q.name for q in store.find_market_prices()}
    assert {"Oil", "Electricity"} <= prices

    power = store.find_corporation_by_id(oil_chain["power"])
    assert power.share_price != 10.0

    with session_factory() as session:
        ledger = session.scalars(select(Transaction)).all()
    assert {t.corporation_id for t in ledger} == {oil_chain["driller"], oil_chain["power"]}


def test_failure_of_one_corporation_is_isolated(market, store, oil_chain, monkeypatch):
    real_apply = store.apply_market_profit

    def flaky_apply(corporation_id, profit, now, description=None):
        if corporation_id == oil_chain["driller"]:
            raise RuntimeError("disk on fire")
        return real_apply(corporation_id, profit, now, description=description)

    monkeypatch.setattr(store, "apply_market_profit", flaky_apply)

    data = market.run_revenue_cycle(FIXED_NOW)

    assert data["failed"] == [oil_chain["driller"]]
    assert data["corporations_processed"] == 1
    assert store.find_corporation_by_id(oil_chain["driller"]).capital == 1_000_000.0


def test_corporation_without_shares_fails_before_any_write(market, store, seed, session_factory):
    shell = seed.corporation("Shell", capital=1_000_000.0, shares=0)
    seed.units(shell, "retail", "Retail", 5)

    data = market.run_revenue_cycle(FIXED_NOW)

    assert data["failed"] == [shell]
    assert data["corporations_processed"] == 0
    corp = store.find_corporation_by_id(shell)
    assert corp.capital == 1_000_000.0
    assert corp.last_profit == 0.0
    with session_factory() as session:
        assert session.scalars(select(Transaction)).all() == []


def test_failed_revaluation_still_counts_as_processed(market, store, oil_chain, monkeypatch):
    def broken_revalue(corporation_id, recent_profit=None):
        raise RuntimeError("valuation offline")

    monkeypatch.setattr(market.valuation, "update_stock_price", broken_revalue)

    data = market.run_revenue_cycle(FIXED_NOW)

    assert data["corporations_processed"] == 2
    assert data["failed"] == []
    assert sorted(data["revaluation_failed"]) == sorted([oil_chain["driller"], oil_chain["power"]])
    driller = store.find_corporation_by_id(oil_chain["driller"])
    assert data["total_profit"] == pytest.approx(
        driller.last_profit + store.find_corporation_by_id(oil_chain["power"]).last_profit
    )


def test_market_cost_rows_store_positive_amount(market, store, seed, session_factory):
    broke = seed.corporation("Broke", capital=1_000_000.0)
    seed.units(broke, "extraction", "Forestry", 5)

    market.run_revenue_cycle(FIXED_NOW)

    with session_factory() as session:
        row = session.scalars(select(Transaction).where(Transaction.corporation_id == broke)).one()
    corp = store.find_corporation_by_id(broke)
    assert row.transaction_type == "market_cost"
    assert row.amount == pytest.approx(-corp.last_profit)
    assert row.amount > 0


# Corporate action boosts
@pytest.mark.parametrize(
    "actions, expected",
    [
        (None, 1.0),
        ({"supply_rush"}, 1.1),
        ({"supply_rush", "marketing_campaign"}, 1.2),
        ({"hostile_takeover"}, 1.0),
    ],
)
def test_boost_multiplier(actions, expected):
    assert boost_multiplier(actions, 0.10) == pytest.approx(expected)


def test_active_boost_scales_profit(market, store, seed):
    plain = seed.corporation("Plain", capital=1_000_000.0)
    boosted = seed.corporation("Boosted", capital=1_000_000.0)
    for corp in (plain, boosted):
        seed.units(corp, "retail", "Retail", 2)
    seed.corporate_action(boosted, "supply_rush")
    seed.corporate_action(boosted, "marketing_campaign")

    market.run_revenue_cycle(FIXED_NOW)

    base = store.find_corporation_by_id(plain).last_profit
    assert store.find_corporation_by_id(boosted).last_profit == pytest.approx(base * 1.2, abs=0.01)


def test_expired_boost_is_ignored(market, store, seed):
    plain = seed.corporation("Plain", capital=1_000_000.0)
    lapsed = seed.corporation("Lapsed", capital=1_000_000.0)
    for corp in (plain, lapsed):
        seed.units(corp, "retail", "Retail", 2)
    seed.corporate_action(lapsed, "supply_rush", expires_at=FIXED_NOW)

    market.run_revenue_cycle(FIXED_NOW)

    assert store.find_corporation_by_id(lapsed).last_profit == store.find_corporation_by_id(plain).last_profit
