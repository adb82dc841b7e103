"""
sector_config.py — Validated, Versioned Sector Configuration

Purpose:
- Define the SectorConfig document (per subtype and unit category: inputs,
  outputs, operating cost, base revenue; plus resource and product tables).
- Validate documents at the loading boundary. A coefficient naming a resource
  or product the tables don't know is a ConfigurationError, as is an unknown
  unit category.
- Cache validated configs by version; admin edits save a new version and
  invalidate the cache.

The calculator and pricing engine only ever see a validated SectorConfig.
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from corpsim.core.cache import cache_clear, cache_get, cache_set, make_key
from corpsim.core.clock import Clock, utcnow
from corpsim.core.errors import ConfigurationError
from corpsim.core.logging import get_logger
from corpsim.core.sector_defaults import build_default_config_document
from corpsim.services.economy.types import UnitCategory

logger = get_logger(__name__)

CACHE_NAMESPACE = "sector_config"
DEFAULT_VERSION = "default"


# -----------------------------------------------------------------------------
# Document Schema
# -----------------------------------------------------------------------------

class UnitCoefficients(BaseModel):
    """Per-unit coefficients for one (subtype, category) pair."""

    inputs: Dict[str, float] = Field(default_factory=dict)
    outputs: Dict[str, float] = Field(default_factory=dict)
    operating_cost: float = Field(0.0, ge=0)
    base_revenue: float = Field(0.0, ge=0)

    @field_validator("inputs", "outputs")
    @classmethod
    def non_negative_coefficients(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, coefficient in v.items():
            if coefficient < 0:
                raise ValueError(f"coefficient for {name!r} must be >= 0")
        return v


class ResourceEntry(BaseModel):
    base_price: float = Field(..., gt=0)


class ProductEntry(BaseModel):
    reference_value: float = Field(..., gt=0)
    min_price: float = Field(0.0, ge=0)


class SectorConfig(BaseModel):
    """
    One version of the sector configuration.

    subtypes maps a subtype name (e.g. "Energy") to the coefficients of each
    unit category that subtype can run. A category absent for a subtype means
    such units produce and consume nothing.
    """

    version: str = DEFAULT_VERSION
    resources: Dict[str, ResourceEntry]
    products: Dict[str, ProductEntry]
    subtypes: Dict[str, Dict[UnitCategory, UnitCoefficients]] = Field(default_factory=dict)

    @field_validator("subtypes", mode="before")
    @classmethod
    def parse_category_keys(cls, v: Any) -> Any:
        # Categories are matched case-insensitively; unknown names fail here
        if not isinstance(v, dict):
            return v
        parsed = {}
        for subtype, units in v.items():
            if not isinstance(units, dict):
                parsed[subtype] = units
                continue
            by_category = {}
            for category, coefficients in units.items():
                try:
                    by_category[UnitCategory.parse(category)] = coefficients
                except ValueError as exc:
                    raise ValueError(f"subtype {subtype!r}: {exc}") from exc
            parsed[subtype] = by_category
        return parsed

    @model_validator(mode="after")
    def check_names_resolve(self) -> "SectorConfig":
        overlap = set(self.resources) & set(self.products)
        if overlap:
            raise ValueError(f"names listed as both resource and product: {sorted(overlap)}")

        known = set(self.resources) | set(self.products)
        for subtype, units in self.subtypes.items():
            for category, coefficients in units.items():
                where = f"{subtype}/{category.value}"
                for name in list(coefficients.inputs) + list(coefficients.outputs):
                    if name not in known:
                        raise ValueError(f"{where} references unknown resource/product {name!r}")
                if category is UnitCategory.EXTRACTION:
                    stray = [n for n in coefficients.outputs if n not in self.resources]
                    if stray:
                        raise ValueError(f"{where} outputs must be resources, got {stray}")
                if category is UnitCategory.PRODUCTION:
                    stray = [n for n in coefficients.outputs if n not in self.products]
                    stray += [n for n in coefficients.inputs if n not in self.resources]
                    if stray:
                        raise ValueError(f"{where} must consume resources and make products, got {stray}")
        return self

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def coefficients(self, category: UnitCategory, subtype: str) -> Optional[UnitCoefficients]:
        return self.subtypes.get(subtype, {}).get(category)

    def resource_names(self) -> List[str]:
        return list(self.resources)

    def product_names(self) -> List[str]:
        return list(self.products)

    def subtype_names(self) -> List[str]:
        return list(self.subtypes)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def load_sector_config(document: Dict[str, Any]) -> SectorConfig:
    """Validate a raw document. Any schema or reference problem is a ConfigurationError."""
    try:
        return SectorConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid sector configuration: {exc}") from exc


def default_sector_config() -> SectorConfig:
    """The static reference configuration, validated once and cached."""
    key = make_key(CACHE_NAMESPACE, DEFAULT_VERSION)
    config = cache_get(key)
    if config is None:
        config = load_sector_config(build_default_config_document(DEFAULT_VERSION))
        cache_set(key, config)
    return config


# -----------------------------------------------------------------------------
# Versioned Registry
# -----------------------------------------------------------------------------

class SectorConfigService:
    """
    Resolve the active SectorConfig from the store, caching by version.

    The active version tag is read from the store on every call; only the
    validated document behind a tag is cached. Saving a new version clears
    the namespace so no stale document can be served.
    """

    def __init__(self, store, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    def active(self) -> SectorConfig:
        version = self.store.get_sector_config_version()
        if version is None:
            return default_sector_config()
        return self.get(version)

    def get(self, version: str) -> SectorConfig:
        key = make_key(CACHE_NAMESPACE, version)
        config = cache_get(key)
        if config is not None:
            return config

        document = self.store.get_sector_config(version)
        if document is None:
            raise ConfigurationError(f"Unknown sector config version: {version!r}")
        document = dict(document, version=version)
        config = load_sector_config(document)
        cache_set(key, config)
        logger.debug("Loaded sector config version %s", version)
        return config

    def save(self, document: Dict[str, Any]) -> SectorConfig:
        """Validate `document`, store it as a new version and make it active."""
        version = f"v{uuid.uuid4().hex[:12]}"
        config = load_sector_config(dict(document, version=version))
        self.store.save_sector_config(version, config.to_document(), self.clock())
        self.invalidate()
        logger.info("Saved sector config version %s (%d subtypes)", version, len(config.subtypes))
        return config

    @staticmethod
    def invalidate() -> None:
        cache_clear(CACHE_NAMESPACE)
