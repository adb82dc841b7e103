"""
Unit tests for sector_config.py

Validation at the loading boundary and the versioned cache.
"""

import copy

import pytest

from corpsim.core.cache import cache_clear, cache_get, cache_set, make_key
from corpsim.core.errors import ConfigurationError
from corpsim.core.sector_defaults import build_default_config_document
from corpsim.services.economy.sector_config import (
    SectorConfigService,
    default_sector_config,
    load_sector_config,
)
from corpsim.services.economy.types import UnitCategory


@pytest.fixture
def document():
    return copy.deepcopy(build_default_config_document())


# Validation
def test_default_document_validates(document):
    config = load_sector_config(document)

    assert "Rare Earth" in config.resources
    assert config.coefficients(UnitCategory.PRODUCTION, "Energy").outputs == {"Electricity": 1.0}


def test_category_keys_case_insensitive(document):
    document["subtypes"]["Energy"] = {"PRODUCTION": document["subtypes"]["Energy"]["production"]}
    config = load_sector_config(document)

    assert UnitCategory.PRODUCTION in config.subtypes["Energy"]


def test_unknown_category_rejected(document):
    document["subtypes"]["Energy"]["refining"] = {"outputs": {"Oil": 1.0}}

    with pytest.raises(ConfigurationError):
        load_sector_config(document)


def test_unknown_resource_reference_rejected(document):
    document["subtypes"]["Energy"]["production"]["inputs"] = {"Uranium": 0.5}

    with pytest.raises(ConfigurationError):
        load_sector_config(document)


def test_extraction_must_output_resources(document):
    document["subtypes"]["Mining"]["extraction"]["outputs"] = {"Electricity": 1.0}

    with pytest.raises(ConfigurationError):
        load_sector_config(document)


def test_negative_coefficient_rejected(document):
    document["subtypes"]["Energy"]["production"]["outputs"] = {"Electricity": -1.0}

    with pytest.raises(ConfigurationError):
        load_sector_config(document)


def test_non_positive_base_price_rejected(document):
    document["resources"]["Oil"]["base_price"] = 0

    with pytest.raises(ConfigurationError):
        load_sector_config(document)


# Cache & versions
def test_default_config_cached_until_invalidated():
    first = default_sector_config()

    assert default_sector_config() is first

    SectorConfigService.invalidate()
    assert default_sector_config() is not first


def test_clearing_one_namespace_keeps_others():
    cache_set(make_key("sector_config", "v1"), "config")
    cache_set(make_key("sector_configs", "v1"), "neighbour")

    cache_clear("sector_config")

    assert cache_get(make_key("sector_config", "v1")) is None
    assert cache_get(make_key("sector_configs", "v1")) == "neighbour"


def test_active_falls_back_to_default(store):
    service = SectorConfigService(store)

    assert service.active().version == "default"


def test_save_creates_new_active_version(store, document, clock):
    service = SectorConfigService(store, clock)
    document["resources"]["Oil"]["base_price"] = 80.0

    saved = service.save(document)
    active = service.active()

    assert active.version == saved.version
    assert active.resources["Oil"].base_price == 80.0
    assert service.active() is active  # cached by version


def test_save_invalidates_previous_version_cache(store, document, clock):
    service = SectorConfigService(store, clock)
    first = service.save(document)
    cached = service.active()

    document["resources"]["Oil"]["base_price"] = 90.0
    second = service.save(document)

    assert second.version != first.version
    assert service.active() is not cached
    assert service.active().resources["Oil"].base_price == 90.0


def test_invalid_document_not_saved(store, document, clock):
    service = SectorConfigService(store, clock)
    document["subtypes"]["Energy"]["production"]["outputs"] = {"Plasma": 1.0}

    with pytest.raises(ConfigurationError):
        service.save(document)
    assert store.get_sector_config_version() is None
