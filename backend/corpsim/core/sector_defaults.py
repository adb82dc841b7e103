"""
sector_defaults.py — Static reference tables for resources, products and sectors.

Defines the reference base prices used by the pricing engine and the default
per-unit coefficients used when no admin-edited sector configuration has been
saved yet. Admin edits produce new SectorConfig versions; these tables are the
fallback and the seed.
"""

from typing import Dict

# Resources extracted by EXTRACTION units and consumed by PRODUCTION units
RESOURCES = [
    "Oil",
    "Steel",
    "Rare Earth",
    "Copper",
    "Fertile Land",
    "Lumber",
    "Chemical Compounds",
]

# Products made by PRODUCTION units and consumed by RETAIL / SERVICE units
PRODUCTS = [
    "Technology Products",
    "Manufactured Goods",
    "Electricity",
    "Food Products",
    "Construction Capacity",
    "Pharmaceutical Products",
    "Defense Equipment",
    "Logistics Capacity",
]

# Base prices per resource unit
RESOURCE_BASE_PRICES: Dict[str, float] = {
    "Oil": 75.0,
    "Steel": 850.0,
    "Rare Earth": 9000.0,
    "Copper": 8500.0,
    "Fertile Land": 3500.0,
    "Lumber": 450.0,
    "Chemical Compounds": 2200.0,
}

# Reference values per product unit
PRODUCT_REFERENCE_VALUES: Dict[str, float] = {
    "Technology Products": 12000.0,
    "Manufactured Goods": 1500.0,
    "Electricity": 250.0,
    "Food Products": 4000.0,
    "Construction Capacity": 1200.0,
    "Pharmaceutical Products": 3500.0,
    "Defense Equipment": 2500.0,
    "Logistics Capacity": 300.0,
}

# Price floors per product (0 = only the global 0.01 floor applies)
PRODUCT_MIN_PRICES: Dict[str, float] = {
    "Technology Products": 50.0,
    "Manufactured Goods": 30.0,
    "Electricity": 20.0,
    "Food Products": 15.0,
    "Construction Capacity": 80.0,
    "Pharmaceutical Products": 60.0,
    "Defense Equipment": 100.0,
    "Logistics Capacity": 30.0,
}

# Per-unit running cost by unit category
UNIT_OPERATING_COSTS: Dict[str, float] = {
    "production": 400.0,
    "retail": 250.0,
    "service": 150.0,
    "extraction": 500.0,
}

# Flat per-unit customer revenue for units that sell to players, not the market
UNIT_BASE_REVENUES: Dict[str, float] = {
    "retail": 1500.0,
    "service": 1200.0,
}

# Production: one unit consumes 0.5 of its resource and makes 1.0 of its product.
# Extraction: one unit extracts 2.0 of each listed resource.
_PRODUCTION_INPUT_RATE = 0.5
_PRODUCTION_OUTPUT_RATE = 1.0
_EXTRACTION_OUTPUT_RATE = 2.0
_RETAIL_CONSUMPTION_RATE = 0.2
_SERVICE_CONSUMPTION_RATE = 0.15

# subtype -> (resource consumed, product made)
_PRODUCTION_CHAINS = {
    "Technology": ("Rare Earth", "Technology Products"),
    "Manufacturing": ("Steel", "Manufactured Goods"),
    "Energy": ("Oil", "Electricity"),
    "Agriculture": ("Fertile Land", "Food Products"),
    "Construction": ("Lumber", "Construction Capacity"),
    "Pharmaceuticals": ("Chemical Compounds", "Pharmaceutical Products"),
    "Defense": ("Steel", "Defense Equipment"),
    "Transportation": ("Steel", "Logistics Capacity"),
}

# subtype -> resources its extraction units pull out of the ground
_EXTRACTION_OUTPUTS = {
    "Energy": ["Oil"],
    "Mining": ["Steel", "Copper", "Rare Earth"],
    "Agriculture": ["Fertile Land"],
    "Forestry": ["Lumber"],
    "Pharmaceuticals": ["Chemical Compounds"],
}

# subtype -> products its retail units stock
_RETAIL_DEMANDS = {
    "Retail": ["Manufactured Goods", "Food Products", "Electricity"],
    "Technology": ["Technology Products"],
    "Manufacturing": ["Manufactured Goods"],
    "Agriculture": ["Food Products"],
    "Pharmaceuticals": ["Pharmaceutical Products"],
    "Defense": ["Defense Equipment"],
}

# subtype -> products its service units draw on
_SERVICE_DEMANDS = {
    "Finance": ["Technology Products", "Electricity"],
    "Healthcare": ["Pharmaceutical Products", "Technology Products", "Electricity"],
    "Retail": ["Logistics Capacity", "Electricity"],
    "Real Estate": ["Construction Capacity", "Electricity"],
    "Telecommunications": ["Technology Products", "Electricity"],
    "Defense": ["Defense Equipment"],
    "Media": ["Electricity"],
}

# Sector-specific overrides of the default consumption rates
_SECTOR_RULES = {
    ("Defense", "retail"): 1.0,
    ("Defense", "service"): 1.0,
    ("Manufacturing", "service"): 0.5,
}

# Service units that consume a raw resource directly
_SERVICE_RESOURCE_INPUTS = {
    "Telecommunications": {"Copper": 0.25},
}


def _subtype_names():
    names = set(_PRODUCTION_CHAINS) | set(_EXTRACTION_OUTPUTS)
    names |= set(_RETAIL_DEMANDS) | set(_SERVICE_DEMANDS)
    return sorted(names)


def build_default_config_document(version: str = "default") -> dict:
    """
    Build the default sector configuration as a plain document.

    The shape matches `corpsim.services.economy.sector_config.SectorConfig`.
    """
    subtypes = {}
    for name in _subtype_names():
        units = {}

        if name in _PRODUCTION_CHAINS:
            resource, product = _PRODUCTION_CHAINS[name]
            units["production"] = {
                "inputs": {resource: _PRODUCTION_INPUT_RATE},
                "outputs": {product: _PRODUCTION_OUTPUT_RATE},
                "operating_cost": UNIT_OPERATING_COSTS["production"],
            }

        if name in _EXTRACTION_OUTPUTS:
            units["extraction"] = {
                "outputs": {r: _EXTRACTION_OUTPUT_RATE for r in _EXTRACTION_OUTPUTS[name]},
                "operating_cost": UNIT_OPERATING_COSTS["extraction"],
            }

        if name in _RETAIL_DEMANDS:
            rate = _SECTOR_RULES.get((name, "retail"), _RETAIL_CONSUMPTION_RATE)
            units["retail"] = {
                "inputs": {p: rate for p in _RETAIL_DEMANDS[name]},
                "operating_cost": UNIT_OPERATING_COSTS["retail"],
                "base_revenue": UNIT_BASE_REVENUES["retail"],
            }

        if name in _SERVICE_DEMANDS:
            rate = _SECTOR_RULES.get((name, "service"), _SERVICE_CONSUMPTION_RATE)
            inputs = {p: rate for p in _SERVICE_DEMANDS[name]}
            inputs.update(_SERVICE_RESOURCE_INPUTS.get(name, {}))
            units["service"] = {
                "inputs": inputs,
                "operating_cost": UNIT_OPERATING_COSTS["service"],
                "base_revenue": UNIT_BASE_REVENUES["service"],
            }

        subtypes[name] = units

    return {
        "version": version,
        "resources": {name: {"base_price": RESOURCE_BASE_PRICES[name]} for name in RESOURCES},
        "products": {
            name: {
                "reference_value": PRODUCT_REFERENCE_VALUES[name],
                "min_price": PRODUCT_MIN_PRICES.get(name, 0.0),
            }
            for name in PRODUCTS
        },
        "subtypes": subtypes,
    }
