"""
pricing.py — Scarcity Pricing Engine

Prices every resource and product from its base price and a scarcity factor:

    ratio  = demand / max(supply, EPSILON)      (1.0 when supply == demand == 0)
    factor = SCARCITY_FLOOR + (1 - SCARCITY_FLOOR) * ratio ** elasticity
    price  = max(min_price, round(base * factor, 2), MIN_PRICE)

The factor is ~1.0 at balance, falls towards SCARCITY_FLOOR under oversupply
and grows without bound under shortage. It is evaluated in log space and
saturates at the largest finite float, so extreme finite demand never yields
inf; prices saturate the same way. Products react less steeply than
commodities (lower elasticity).

Unknown names are a ConfigurationError: no price is ever fabricated.
"""

import math
import sys
from typing import Mapping, Optional

from corpsim.core.errors import ConfigurationError, InvalidInput
from corpsim.core.sector_defaults import (
    PRODUCT_MIN_PRICES,
    PRODUCT_REFERENCE_VALUES,
    RESOURCE_BASE_PRICES,
)
from corpsim.services.economy.types import PriceQuote

EPSILON = 0.01
SCARCITY_FLOOR = 0.25
COMMODITY_ELASTICITY = 0.8
PRODUCT_ELASTICITY = 0.7
MIN_PRICE = 0.01

_MAX_FLOAT = sys.float_info.max


def _check_quantity(label: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{label} must be numeric, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidInput(f"{label} must be a finite value >= 0, got {value!r}")
    return value


def scarcity_factor(supply: float, demand: float, elasticity: float) -> float:
    supply = _check_quantity("supply", supply)
    demand = _check_quantity("demand", demand)
    if supply == 0 and demand == 0:
        return 1.0  # no market signal
    if demand == 0:
        return SCARCITY_FLOOR
    log_ratio = math.log(demand) - math.log(max(supply, EPSILON))
    try:
        growth = math.exp(elasticity * log_ratio)
    except OverflowError:
        return _MAX_FLOAT
    return SCARCITY_FLOOR + (1 - SCARCITY_FLOOR) * growth


def _bounded_price(value: float) -> float:
    return min(round(value, 2), _MAX_FLOAT)


class PricingEngine:

    def __init__(
        self,
        resource_prices: Mapping[str, float],
        product_values: Mapping[str, float],
        product_min_prices: Optional[Mapping[str, float]] = None,
    ):
        self.resource_prices = dict(resource_prices)
        self.product_values = dict(product_values)
        self.product_min_prices = dict(product_min_prices or {})

    @classmethod
    def from_config(cls, config) -> "PricingEngine":
        """Engine pricing against a SectorConfig's resource and product tables."""
        return cls(
            {name: entry.base_price for name, entry in config.resources.items()},
            {name: entry.reference_value for name, entry in config.products.items()},
            {name: entry.min_price for name, entry in config.products.items()},
        )

    def get_base_resource_price(self, name: str) -> float:
        try:
            return self.resource_prices[name]
        except KeyError:
            raise ConfigurationError(f"No base price configured for resource {name!r}") from None

    def get_base_product_price(self, name: str) -> float:
        try:
            return self.product_values[name]
        except KeyError:
            raise ConfigurationError(f"No reference value configured for product {name!r}") from None

    def calculate_commodity_price(self, name: str, supply: float, demand: float) -> PriceQuote:
        base = self.get_base_resource_price(name)
        factor = scarcity_factor(supply, demand, COMMODITY_ELASTICITY)
        return PriceQuote(
            name=name,
            base_price=base,
            scarcity_factor=factor,
            price=max(_bounded_price(base * factor), MIN_PRICE),
            supply=float(supply),
            demand=float(demand),
            kind="resource",
        )

    def calculate_product_price(self, name: str, supply: float, demand: float) -> PriceQuote:
        base = self.get_base_product_price(name)
        factor = scarcity_factor(supply, demand, PRODUCT_ELASTICITY)
        floor = self.product_min_prices.get(name, 0.0)
        return PriceQuote(
            name=name,
            base_price=base,
            scarcity_factor=factor,
            price=max(floor, _bounded_price(base * factor), MIN_PRICE),
            supply=float(supply),
            demand=float(demand),
            kind="product",
        )


_reference_engine = PricingEngine(RESOURCE_BASE_PRICES, PRODUCT_REFERENCE_VALUES, PRODUCT_MIN_PRICES)


def get_base_resource_price(name: str) -> float:
    return _reference_engine.get_base_resource_price(name)


def get_base_product_price(name: str) -> float:
    return _reference_engine.get_base_product_price(name)


def calculate_commodity_price(name: str, supply: float, demand: float) -> PriceQuote:
    return _reference_engine.calculate_commodity_price(name, supply, demand)


def calculate_product_price(name: str, supply: float, demand: float) -> PriceQuote:
    return _reference_engine.calculate_product_price(name, supply, demand)
