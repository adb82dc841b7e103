"""
sector_calculator.py — Market-Wide Supply & Demand Aggregation

Purpose:
- Turn deployed business-unit counts into aggregate supply and demand per
  resource (commodity) and per product, using the coefficients of a
  validated SectorConfig.

Rules:
- Commodity supply: EXTRACTION outputs. Commodity demand: inputs of
  PRODUCTION, RETAIL and SERVICE units.
- Product supply: PRODUCTION outputs. Product demand: inputs of RETAIL and
  SERVICE units.
- Every requested name is present in both result maps (0.0 by default).
- Unknown subtypes contribute nothing.

Pure: no store access, no clock, no logging side effects on the hot path.
"""

import math
from typing import Any, Iterable, Mapping, Optional

from corpsim.core.errors import InvalidInput
from corpsim.services.economy.sector_config import SectorConfig, default_sector_config
from corpsim.services.economy.types import (
    COMMODITY_DEMAND_CATEGORIES,
    COMMODITY_SUPPLY_CATEGORIES,
    PRODUCT_DEMAND_CATEGORIES,
    PRODUCT_SUPPLY_CATEGORIES,
    SupplyDemand,
    UnitCategory,
    UnitMaps,
)


def normalize_unit_maps(unit_maps: Optional[Mapping[Any, Mapping[str, Any]]]) -> UnitMaps:
    """
    Validate `unit_maps` and key it by UnitCategory.

    Raises InvalidInput for an unknown category or a negative/non-numeric count.
    """
    normalized: UnitMaps = {}
    for raw_category, counts in (unit_maps or {}).items():
        category = UnitCategory.parse(raw_category)
        if counts is None:
            continue
        if not isinstance(counts, Mapping):
            raise InvalidInput(f"Unit counts for {category.value} must be a mapping")
        bucket = normalized.setdefault(category, {})
        for subtype, count in counts.items():
            if isinstance(count, bool) or not isinstance(count, (int, float)):
                raise InvalidInput(f"Unit count for {category.value}/{subtype} must be numeric, got {count!r}")
            if not math.isfinite(count) or count < 0:
                raise InvalidInput(f"Unit count for {category.value}/{subtype} must be >= 0, got {count!r}")
            bucket[subtype] = bucket.get(subtype, 0) + count
    return normalized


class SectorCalculator:

    def __init__(self, config: Optional[SectorConfig] = None):
        self.config = config if config is not None else default_sector_config()

    def _accumulate(self, unit_maps: UnitMaps, categories, side: str, totals: dict) -> None:
        for category in categories:
            for subtype, count in unit_maps.get(category, {}).items():
                if not count:
                    continue
                coefficients = self.config.coefficients(category, subtype)
                if coefficients is None:
                    continue
                for name, per_unit in getattr(coefficients, side).items():
                    if name in totals:
                        totals[name] += count * per_unit

    def _compute(
        self,
        unit_maps,
        names: Iterable[str],
        supply_categories,
        demand_categories,
    ) -> SupplyDemand:
        maps = normalize_unit_maps(unit_maps)
        names = list(names)
        supply = {name: 0.0 for name in names}
        demand = {name: 0.0 for name in names}
        self._accumulate(maps, supply_categories, "outputs", supply)
        self._accumulate(maps, demand_categories, "inputs", demand)
        return SupplyDemand(supply=supply, demand=demand)

    def compute_commodity_supply_demand(self, unit_maps, resource_names: Optional[Iterable[str]] = None) -> SupplyDemand:
        if resource_names is None:
            resource_names = self.config.resource_names()
        return self._compute(
            unit_maps,
            resource_names,
            COMMODITY_SUPPLY_CATEGORIES,
            COMMODITY_DEMAND_CATEGORIES,
        )

    def compute_product_supply_demand(self, unit_maps, product_names: Optional[Iterable[str]] = None) -> SupplyDemand:
        if product_names is None:
            product_names = self.config.product_names()
        return self._compute(
            unit_maps,
            product_names,
            PRODUCT_SUPPLY_CATEGORIES,
            PRODUCT_DEMAND_CATEGORIES,
        )


# -----------------------------------------------------------------------------
# Module-level helpers against the static reference configuration
# -----------------------------------------------------------------------------

def compute_commodity_supply_demand(unit_maps, resource_names: Iterable[str], config: Optional[SectorConfig] = None) -> SupplyDemand:
    return SectorCalculator(config).compute_commodity_supply_demand(unit_maps, resource_names)


def compute_product_supply_demand(unit_maps, product_names: Iterable[str], config: Optional[SectorConfig] = None) -> SupplyDemand:
    return SectorCalculator(config).compute_product_supply_demand(unit_maps, product_names)
