"""Tests for the SQLAlchemy claim store repositories."""

from __future__ import annotations

import logging

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session  # noqa: TC002

from claimstack.adapters.sqlalchemy.mappings import claim_country_table, product_table
from claimstack.adapters.sqlalchemy.repositories import (
    SqlAlchemyClaimRepository,
    SqlAlchemyMarketOverrideRepository,
    SqlAlchemyProductRepository,
)
from claimstack.domain.model import ClaimLevel, ClaimType, Product
from claimstack.domain.resolution import FetchLayer, UpstreamFetchError
from tests.support.claims import (
    ALL_MARKETS,
    BRAND_ID,
    COUNTRY,
    GLOBAL,
    INGREDIENT_ID,
    OTHER_COUNTRY,
    PRODUCT_ID,
)
from tests.support.store import StoreSeeder

SCOPES = {COUNTRY, GLOBAL}


@pytest.fixture
def seeder(sqlite_engine: Engine) -> StoreSeeder:
    seeder = StoreSeeder(sqlite_engine)
    seeder.brand()
    seeder.product()
    return seeder


def test_product_get_returns_product_or_none(seeder: StoreSeeder, sqlite_session: Session) -> None:
    repository = SqlAlchemyProductRepository(sqlite_session)

    assert repository.get(PRODUCT_ID) == Product(
        id=PRODUCT_ID, name="Gentle Cleanser", master_brand_id=BRAND_ID
    )
    assert repository.get("missing") is None


def test_product_query_filters_by_brand_and_orders_by_name(
    seeder: StoreSeeder, sqlite_session: Session
) -> None:
    seeder.brand("brand-2", name="Other")
    seeder.product("prod-2", name="Body Lotion", ingredient_ids=())
    seeder.product("prod-3", name="Aftershave", master_brand_id="brand-2", ingredient_ids=())
    repository = SqlAlchemyProductRepository(sqlite_session)

    branded = repository.query(master_brand_id=BRAND_ID)
    everything = repository.query()

    assert [product.id for product in branded] == ["prod-2", PRODUCT_ID]
    assert [product.id for product in everything] == ["prod-3", "prod-2", PRODUCT_ID]


def test_ingredient_ids_are_sorted(seeder: StoreSeeder, sqlite_session: Session) -> None:
    seeder.product("prod-2", ingredient_ids=("ing-9", INGREDIENT_ID))
    repository = SqlAlchemyProductRepository(sqlite_session)

    assert repository.ingredient_ids("prod-2") == (INGREDIENT_ID, "ing-9")
    assert repository.ingredient_ids("missing") == ()


def test_product_claims_keep_only_requested_scopes(
    seeder: StoreSeeder, sqlite_session: Session
) -> None:
    seeder.claim("p1", "Gentle")
    seeder.claim("p2", "Soothing", scopes=(COUNTRY,))
    seeder.claim("p3", "Hypoallergenic", scopes=(OTHER_COUNTRY,))
    seeder.claim("p4", "Fragrance free", scopes=(GLOBAL, COUNTRY, OTHER_COUNTRY))
    seeder.claim("p5", "Mild", level="Product")
    seeder.claim("b1", "Vegan", level=ClaimLevel.BRAND)
    repository = SqlAlchemyClaimRepository(sqlite_session)

    definitions = {
        definition.id: definition
        for definition in repository.for_product(PRODUCT_ID, scopes=SCOPES)
    }

    assert sorted(definitions) == ["p1", "p2", "p4", "p5"]
    assert definitions["p4"].scopes == frozenset({GLOBAL, COUNTRY})
    assert definitions["p5"].level is ClaimLevel.PRODUCT
    assert definitions["p1"].owner_id == PRODUCT_ID


def test_ingredient_claims_carry_their_ingredient(
    seeder: StoreSeeder, sqlite_session: Session
) -> None:
    seeder.claim("i1", "Alcohol free", level=ClaimLevel.INGREDIENT)
    seeder.claim("i2", "Silicone free", level=ClaimLevel.INGREDIENT, owner_id="ing-9")
    repository = SqlAlchemyClaimRepository(sqlite_session)

    definitions = repository.for_ingredients([INGREDIENT_ID], scopes=SCOPES)

    assert [definition.id for definition in definitions] == ["i1"]
    assert definitions[0].owner_id == INGREDIENT_ID
    assert repository.for_ingredients([], scopes=SCOPES) == ()


def test_brand_claims_are_read_by_brand(seeder: StoreSeeder, sqlite_session: Session) -> None:
    seeder.brand("brand-2", name="Other")
    seeder.claim("b1", "Vegan", level=ClaimLevel.BRAND, claim_type=ClaimType.MANDATORY)
    seeder.claim("b2", "Organic", level=ClaimLevel.BRAND, owner_id="brand-2")
    repository = SqlAlchemyClaimRepository(sqlite_session)

    (definition,) = repository.for_brand(BRAND_ID, scopes=SCOPES)

    assert definition.id == "b1"
    assert definition.claim_type is ClaimType.MANDATORY
    assert definition.owner_id == BRAND_ID


def test_malformed_claim_rows_are_skipped(
    seeder: StoreSeeder, sqlite_session: Session, caplog: pytest.LogCaptureFixture
) -> None:
    seeder.claim("p1", "Gentle")
    seeder.claim("p2", "Broken", claim_type="sometimes")
    repository = SqlAlchemyClaimRepository(sqlite_session)

    with caplog.at_level(logging.WARNING):
        definitions = repository.for_product(PRODUCT_ID, scopes=SCOPES)

    assert [definition.id for definition in definitions] == ["p1"]
    assert "Skipping malformed ClaimRow row" in caplog.text


def test_overrides_join_replacement_with_all_its_scopes(
    seeder: StoreSeeder, sqlite_session: Session
) -> None:
    seeder.claim("b1", "Vegan", level=ClaimLevel.BRAND)
    seeder.claim(
        "r1",
        "Plant based",
        level=ClaimLevel.INGREDIENT,
        owner_id="ing-9",
        scopes=(COUNTRY, OTHER_COUNTRY),
    )
    seeder.override("ov-1", "b1", replacement_claim_id="r1", is_blocked=False)
    seeder.override("ov-2", "b1", market=ALL_MARKETS)
    seeder.override("ov-3", "b1", market=OTHER_COUNTRY)
    repository = SqlAlchemyMarketOverrideRepository(sqlite_session)

    overrides = repository.for_product(PRODUCT_ID, markets=(COUNTRY, ALL_MARKETS))

    assert [override.id for override in overrides] == ["ov-1", "ov-2"]
    replaced, blocked = overrides
    assert replaced.replacement is not None
    assert replaced.replacement.text == "Plant based"
    assert replaced.replacement.scopes == frozenset({COUNTRY, OTHER_COUNTRY})
    assert replaced.replacement.owner_id == "ing-9"
    assert not replaced.is_blocked
    assert blocked.applies_to_all_markets
    assert blocked.replacement is None
    assert not blocked.is_dangling


def test_override_with_missing_replacement_is_dangling(
    seeder: StoreSeeder, sqlite_session: Session
) -> None:
    seeder.claim("b1", "Vegan", level=ClaimLevel.BRAND)
    seeder.override("ov-1", "b1", replacement_claim_id="gone")
    repository = SqlAlchemyMarketOverrideRepository(sqlite_session)

    (override,) = repository.for_product(PRODUCT_ID, markets=(COUNTRY,))

    assert override.replacement_claim_id == "gone"
    assert override.is_dangling


def test_store_failures_are_tagged_with_their_layer(
    seeder: StoreSeeder, sqlite_engine: Engine, sqlite_session: Session
) -> None:
    seeder.claim("b1", "Vegan", level=ClaimLevel.BRAND)
    claim_country_table.drop(sqlite_engine)
    product_table.drop(sqlite_engine)

    with pytest.raises(UpstreamFetchError) as claims_error:
        SqlAlchemyClaimRepository(sqlite_session).for_brand(BRAND_ID, scopes=SCOPES)
    sqlite_session.rollback()
    with pytest.raises(UpstreamFetchError) as product_error:
        SqlAlchemyProductRepository(sqlite_session).get(PRODUCT_ID)

    assert claims_error.value.layer is FetchLayer.BRAND_CLAIMS
    assert product_error.value.layer is FetchLayer.PRODUCT
