"""
market.py — Market Snapshot & Revenue Cycle

Purpose:
- Build a market snapshot: market-wide supply/demand from all deployed units,
  priced by the PricingEngine for every resource and product.
- Run the market-revenue cycle: per corporation, price its own outputs and
  inputs into a profit, scale it by any active corporate-action boost, apply
  it with last_profit and the ledger row in one store transaction (capital
  clamped at 0), then revalue the share price.

Per-corporation profit:

    profit = Σ outputs × price − Σ inputs × price + Σ base_revenue − Σ operating_cost

with every term scaled by the unit count, then multiplied by
1 + MARKET_BOOST_PER_ACTION for each active supply_rush / marketing_campaign.
Corporations without units are skipped.

Once the money has moved a corporation counts as processed; a failed
revaluation afterwards is reported in `revaluation_failed`, never in `failed`.
"""

import datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.errors import ConfigurationError, InvalidInput
from corpsim.core.logging import get_logger
from corpsim.services.economy.pricing import PricingEngine
from corpsim.services.economy.sector_calculator import SectorCalculator, normalize_unit_maps
from corpsim.services.economy.sector_config import SectorConfig
from corpsim.services.economy.types import BOOST_ACTION_TYPES, PriceQuote, UnitMaps

logger = get_logger(__name__)


@dataclass
class MarketSnapshot:
    commodities: Dict[str, PriceQuote] = field(default_factory=dict)
    products: Dict[str, PriceQuote] = field(default_factory=dict)

    def price_of(self, name: str) -> float:
        quote = self.commodities.get(name) or self.products.get(name)
        if quote is None:
            raise ConfigurationError(f"No market price for {name!r}")
        return quote.price

    def quotes(self) -> List[PriceQuote]:
        return list(self.commodities.values()) + list(self.products.values())


@dataclass
class ProfitBreakdown:
    output_revenue: float = 0.0
    input_cost: float = 0.0
    base_revenue: float = 0.0
    operating_cost: float = 0.0

    @property
    def profit(self) -> float:
        return round(
            self.output_revenue - self.input_cost + self.base_revenue - self.operating_cost,
            2,
        )


def build_market_snapshot(unit_maps, config: SectorConfig) -> MarketSnapshot:
    """Price every configured resource and product against market-wide units."""
    calculator = SectorCalculator(config)
    engine = PricingEngine.from_config(config)

    commodity_sd = calculator.compute_commodity_supply_demand(unit_maps)
    product_sd = calculator.compute_product_supply_demand(unit_maps)

    snapshot = MarketSnapshot()
    for name in config.resource_names():
        snapshot.commodities[name] = engine.calculate_commodity_price(
            name, commodity_sd.supply[name], commodity_sd.demand[name]
        )
    for name in config.product_names():
        snapshot.products[name] = engine.calculate_product_price(
            name, product_sd.supply[name], product_sd.demand[name]
        )
    return snapshot


def corporation_profit(unit_maps, config: SectorConfig, snapshot: MarketSnapshot) -> ProfitBreakdown:
    """Profit of one corporation's units at the snapshot's prices."""
    breakdown = ProfitBreakdown()
    for category, counts in normalize_unit_maps(unit_maps).items():
        for subtype, count in counts.items():
            if not count:
                continue
            coefficients = config.coefficients(category, subtype)
            if coefficients is None:
                logger.debug("No coefficients for %s/%s, units earn nothing", subtype, category.value)
                continue
            for name, per_unit in coefficients.outputs.items():
                breakdown.output_revenue += count * per_unit * snapshot.price_of(name)
            for name, per_unit in coefficients.inputs.items():
                breakdown.input_cost += count * per_unit * snapshot.price_of(name)
            breakdown.base_revenue += count * coefficients.base_revenue
            breakdown.operating_cost += count * coefficients.operating_cost
    return breakdown


def boost_multiplier(active_actions, per_action: float) -> float:
    """1.0 plus `per_action` for every boost-type corporate action in effect."""
    boosts = [a for a in BOOST_ACTION_TYPES if a in (active_actions or ())]
    return 1.0 + per_action * len(boosts)


class MarketService:
    """
    Store-backed market operations used by the turn scheduler.
    """

    def __init__(self, store, config_service, valuation, cfg: Settings = default_settings):
        self.store = store
        self.config_service = config_service
        self.valuation = valuation
        self.settings = cfg

    def snapshot(self, config: Optional[SectorConfig] = None) -> MarketSnapshot:
        config = config or self.config_service.active()
        return build_market_snapshot(self.store.unit_counts(), config)

    def run_revenue_cycle(self, now: datetime.datetime) -> dict:
        config = self.config_service.active()
        snapshot = self.snapshot(config)
        self.store.save_market_prices(snapshot.quotes(), now)
        active_actions = self.store.active_corporate_actions(now)

        processed = 0
        failed = []
        revaluation_failed = []
        total_profit = 0.0

        for corp in self.store.find_all_corporations():
            try:
                units: UnitMaps = self.store.unit_counts(corp.id)
                if not any(units.values()):
                    continue
                if corp.shares <= 0:
                    raise InvalidInput(f"Corporation {corp.id} has no outstanding shares to revalue")

                base_profit = corporation_profit(units, config, snapshot).profit
                multiplier = boost_multiplier(active_actions.get(corp.id), self.settings.MARKET_BOOST_PER_ACTION)
                profit = round(base_profit * multiplier, 2)
                description = "Market revenue cycle"
                if multiplier != 1.0:
                    description += f" (boost x{multiplier:.2f})"

                self.store.apply_market_profit(corp.id, profit, now, description=description)
            except Exception:
                logger.exception("Market revenue failed for corporation %s", corp.id)
                failed.append(corp.id)
                continue

            processed += 1
            total_profit += profit
            try:
                self.valuation.update_stock_price(corp.id, recent_profit=profit)
            except Exception:
                logger.exception("Revaluation failed for corporation %s after profit was applied", corp.id)
                revaluation_failed.append(corp.id)

        return {
            "corporations_processed": processed,
            "total_profit": round(total_profit, 2),
            "failed": failed,
            "revaluation_failed": revaluation_failed,
        }
