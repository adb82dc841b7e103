"""
Unit tests for pricing.py

Scarcity factor shape, price floors and base-price lookups.
"""

import math
import sys

import pytest

from corpsim.core.errors import ConfigurationError, InvalidInput
from corpsim.services.economy.pricing import (
    COMMODITY_ELASTICITY,
    PRODUCT_ELASTICITY,
    SCARCITY_FLOOR,
    PricingEngine,
    calculate_commodity_price,
    calculate_product_price,
    get_base_product_price,
    get_base_resource_price,
    scarcity_factor,
)
from corpsim.services.economy.sector_config import default_sector_config


# Base prices
def test_reference_base_prices():
    assert get_base_resource_price("Rare Earth") == 9000
    assert get_base_product_price("Technology Products") > 0


def test_unknown_names_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        get_base_resource_price("Unobtainium")
    with pytest.raises(ConfigurationError):
        calculate_product_price("Flux Capacitors", 1, 1)


# Scarcity factor
def test_balanced_market_prices_at_base():
    quote = calculate_commodity_price("Rare Earth", 10, 10)

    assert quote.scarcity_factor == pytest.approx(1.0)
    assert quote.price == 9000.0
    assert quote.kind == "resource"


def test_shortage_raises_factor_above_three_for_both_kinds():
    assert calculate_commodity_price("Oil", 10, 100).scarcity_factor > 3.0
    assert calculate_product_price("Electricity", 10, 100).scarcity_factor > 3.0


def test_no_market_signal_means_neutral_factor():
    assert scarcity_factor(0, 0, COMMODITY_ELASTICITY) == pytest.approx(1.0)


def test_zero_supply_is_finite_and_positive():
    factor = scarcity_factor(0, 50, PRODUCT_ELASTICITY)

    assert math.isfinite(factor)
    assert factor > 1.0


@pytest.mark.parametrize("supply", [0, 0.001, 1.0])
def test_extreme_demand_stays_finite(supply):
    quote = calculate_commodity_price("Oil", supply, 1e307)

    assert math.isfinite(quote.scarcity_factor)
    assert quote.scarcity_factor > 3.0
    assert math.isfinite(quote.price)


def test_factor_saturates_instead_of_overflowing():
    factor = scarcity_factor(0, sys.float_info.max, 10.0)

    assert factor == sys.float_info.max


def test_oversupply_approaches_floor():
    factor = scarcity_factor(1_000_000, 0, COMMODITY_ELASTICITY)

    assert factor == pytest.approx(SCARCITY_FLOOR)


def test_monotonic_in_demand_and_supply():
    low = scarcity_factor(10, 5, COMMODITY_ELASTICITY)
    high = scarcity_factor(10, 50, COMMODITY_ELASTICITY)
    more_supply = scarcity_factor(40, 50, COMMODITY_ELASTICITY)

    assert low < high
    assert more_supply < high


def test_negative_quantities_rejected():
    with pytest.raises(InvalidInput):
        scarcity_factor(-1, 10, COMMODITY_ELASTICITY)


# Price floors
def test_product_min_price_applies():
    engine = PricingEngine({}, {"Widget": 100.0}, {"Widget": 40.0})
    quote = engine.calculate_product_price("Widget", 1000, 0)

    assert quote.price == 40.0  # 100 x 0.25 = 25 < 40


def test_price_never_below_one_cent():
    engine = PricingEngine({"Dust": 0.01}, {})
    quote = engine.calculate_commodity_price("Dust", 1000, 0)

    assert quote.price == 0.01


def test_engine_from_config_uses_config_tables():
    engine = PricingEngine.from_config(default_sector_config())

    assert engine.get_base_resource_price("Oil") == 75.0
    assert engine.get_base_product_price("Electricity") == 250.0
