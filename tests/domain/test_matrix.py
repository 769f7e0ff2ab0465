from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import pytest

from claimstack.domain.matrix import build_claims_matrix
from claimstack.domain.model import ClaimLevel, FinalClaimType
from claimstack.domain.resolution import FetchLayer
from tests.support.claims import (
    BRAND_ID,
    COUNTRY,
    PRODUCT_ID,
    FakeClaimStore,
    make_definition,
    make_override,
)

if TYPE_CHECKING:
    from claimstack.domain.matrix import ClaimsMatrix


@pytest.fixture
def matrix_store(claim_store: FakeClaimStore) -> FakeClaimStore:
    claim_store.add_product("prod-2", name="Body Lotion", ingredient_ids=())
    claim_store.add_product("prod-3", name="Unbranded", master_brand_id=None)
    claim_store.add_product("prod-4", name="Other Brand", master_brand_id="brand-2")
    claim_store.definitions = [
        make_definition("b1", "Vegan", level=ClaimLevel.BRAND),
        make_definition("p1", "Gentle", level=ClaimLevel.PRODUCT, owner_id=PRODUCT_ID),
        make_definition("p2", "gentle", level=ClaimLevel.PRODUCT, owner_id="prod-2"),
    ]
    claim_store.overrides = [make_override("ov-1", "b1", product_id="prod-2")]
    return claim_store


def test_matrix_lists_branded_products_and_claim_rows(matrix_store: FakeClaimStore) -> None:
    matrix = build_claims_matrix(
        COUNTRY, unit_of_work_factory=matrix_store.unit_of_work, master_brand_id=BRAND_ID
    )

    assert [product.id for product in matrix.products] == ["prod-2", PRODUCT_ID]
    assert matrix.claim_texts == ["gentle", "Vegan"]
    assert matrix.cell("vegan", PRODUCT_ID).is_master_derived  # type: ignore[union-attr]
    blocked = matrix.cell("Vegan", "prod-2")
    assert blocked is not None
    assert blocked.final_type is FinalClaimType.NONE
    assert matrix.cell("GENTLE", "prod-2").source_claim_id == "p2"  # type: ignore[union-attr]


def test_matrix_skips_unbranded_products(matrix_store: FakeClaimStore) -> None:
    matrix = build_claims_matrix(COUNTRY, unit_of_work_factory=matrix_store.unit_of_work)

    assert "prod-3" not in {product.id for product in matrix.products}
    assert "prod-4" in {product.id for product in matrix.products}
    assert matrix.cell("Vegan", "prod-4") is None


def test_matrix_is_empty_when_product_listing_fails(
    matrix_store: FakeClaimStore, caplog: pytest.LogCaptureFixture
) -> None:
    matrix_store.failing = {FetchLayer.PRODUCTS}

    with caplog.at_level(logging.ERROR):
        matrix = build_claims_matrix(COUNTRY, unit_of_work_factory=matrix_store.unit_of_work)

    assert matrix.is_empty
    assert matrix.claim_texts == []
    assert "Cannot build claims matrix" in caplog.text


def test_matrix_requires_country(matrix_store: FakeClaimStore) -> None:
    matrix = build_claims_matrix(" ", unit_of_work_factory=matrix_store.unit_of_work)

    assert matrix.is_empty
    assert matrix_store.calls == []


def test_matrix_refuses_running_event_loop(
    matrix_store: FakeClaimStore, caplog: pytest.LogCaptureFixture
) -> None:
    async def build_inside_loop() -> ClaimsMatrix:
        return build_claims_matrix(COUNTRY, unit_of_work_factory=matrix_store.unit_of_work)

    with caplog.at_level(logging.ERROR):
        matrix = asyncio.run(build_inside_loop())

    assert matrix.is_empty
    assert matrix.country_code == COUNTRY
    assert matrix_store.calls == []
    assert "running event loop" in caplog.text
