from __future__ import annotations

import pytest

from app.config import Settings
from app.providers.compendium import CompendiumCatalog
from app.providers.factory import make_item_catalog
from app.services.catalog import SqlItemCatalog


def test_sql_catalog_by_default(sql_engine) -> None:
    assert isinstance(make_item_catalog(Settings(item_catalog="sql"), sql_engine), SqlItemCatalog)


def test_compendium_catalog_with_cache(sql_engine, redis_client) -> None:
    settings = Settings(item_catalog="compendium", compendium_base_url="http://compendium.test/api/")
    catalog = make_item_catalog(settings, sql_engine, redis_client)
    assert isinstance(catalog, CompendiumCatalog)


def test_unknown_catalog_rejected(sql_engine) -> None:
    settings = Settings().model_copy(update={"item_catalog": "ldap"})
    with pytest.raises(ValueError):
        make_item_catalog(settings, sql_engine)
