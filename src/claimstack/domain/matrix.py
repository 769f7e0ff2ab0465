"""Claims matrix: effective claims of many products side by side for one market."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from claimstack.config.resolution import ResolutionConfig
from claimstack.domain.model import Product, normalize_claim_text
from claimstack.domain.resolution import (
    FetchLayer,
    UpstreamFetchError,
    get_effective_claims_async,
)
from claimstack.domain.resolution.layers import event_loop_is_running, fetch_with_retry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimstack.domain.model import EffectiveClaim, EntityId
    from claimstack.domain.ports import ClaimsUnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class ClaimsMatrix:
    """Products as columns, normalized claim texts as rows.

    ``claim_texts`` holds the display text of every row, ordered case-insensitively;
    ``cells`` maps a normalized text to the per-product effective claim.
    """

    country_code: str
    products: list[Product] = field(default_factory=list[Product])
    claim_texts: list[str] = field(default_factory=list[str])
    cells: dict[str, dict[EntityId, EffectiveClaim]] = field(default_factory=dict)

    def cell(self, claim_text: str, product_id: EntityId) -> EffectiveClaim | None:
        return self.cells.get(normalize_claim_text(claim_text), {}).get(product_id)

    @property
    def is_empty(self) -> bool:
        return not self.products


def build_claims_matrix(
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    master_brand_id: EntityId | None = None,
    config: ResolutionConfig | None = None,
) -> ClaimsMatrix:
    """Resolve every product (optionally of one brand) for ``country_code``.

    Products without a brand are left out. A failing product listing yields an
    empty matrix; a product whose resolution fails contributes an empty column.
    Called from a running event loop it logs an error and returns an empty matrix.
    """

    if not country_code or not country_code.strip():
        log.error("Cannot build claims matrix: country_code is required")
        return ClaimsMatrix(country_code=country_code or "")
    if event_loop_is_running():
        log.error(
            "Cannot build claims matrix for %s from a running event loop", country_code
        )
        return ClaimsMatrix(country_code=country_code)
    return asyncio.run(
        _build_claims_matrix(
            country_code,
            unit_of_work_factory=unit_of_work_factory,
            master_brand_id=master_brand_id,
            config=config or ResolutionConfig(),
        )
    )


async def _build_claims_matrix(
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    master_brand_id: EntityId | None,
    config: ResolutionConfig,
) -> ClaimsMatrix:
    def fetch_products() -> tuple[Product, ...]:
        with unit_of_work_factory() as uow:
            return uow.repositories.products.query(master_brand_id=master_brand_id)

    try:
        listed = await fetch_with_retry(FetchLayer.PRODUCTS, fetch_products, retry=config.retry)
    except UpstreamFetchError as exc:
        log.error("Cannot build claims matrix for %s: %s", country_code, exc)  # noqa: TRY400
        return ClaimsMatrix(country_code=country_code)

    products = [product for product in listed if product.master_brand_id is not None]
    if len(products) < len(listed):
        log.debug("Skipping %s products without a brand", len(listed) - len(products))

    columns = await asyncio.gather(
        *(
            get_effective_claims_async(
                product.id,
                country_code,
                unit_of_work_factory=unit_of_work_factory,
                config=config,
            )
            for product in products
        )
    )
    matrix = _assemble(country_code, products, columns)
    log.info(
        "Built claims matrix for %s: products=%s, rows=%s",
        country_code,
        len(matrix.products),
        len(matrix.claim_texts),
    )
    return matrix


def _assemble(
    country_code: str,
    products: Sequence[Product],
    columns: Sequence[list[EffectiveClaim]],
) -> ClaimsMatrix:
    matrix = ClaimsMatrix(country_code=country_code, products=list(products))
    display: dict[str, str] = {}
    for product, column in zip(products, columns, strict=True):
        for row in column:
            key = row.normalized_text
            if not key:
                continue
            display.setdefault(key, row.text.strip())
            matrix.cells.setdefault(key, {})[product.id] = row
    matrix.claim_texts = [display[key] for key in sorted(display)]
    return matrix
