"""Translate validated store rows into domain objects."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from claimstack.domain.model import (
    ClaimDefinition,
    MarketOverride,
    Product,
    ScopedCandidate,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from pydantic import BaseModel

    from .schema import CandidateRow, ClaimRow, OverrideRow, ProductRow


log = getLogger(__name__)


def validate_rows[TModel: BaseModel](
    model: type[TModel],
    rows: Iterable[Mapping[str, object]],
    *,
    context: str,
) -> Iterator[TModel]:
    """Yield valid rows; a malformed row is logged and skipped."""

    for row in rows:
        try:
            yield model.model_validate(dict(row))
        except ValidationError as exc:
            log.warning(
                "Skipping malformed %s row for %s: %s",
                model.__name__,
                context,
                exc.errors(include_url=False),
            )


def product_from_row(row: ProductRow) -> Product:
    return Product(id=row.id, name=row.name, master_brand_id=row.master_brand_id)


def definition_from_row(row: ClaimRow, scopes: Iterable[str]) -> ClaimDefinition:
    return ClaimDefinition(
        id=row.id,
        text=row.text,
        claim_type=row.claim_type,
        level=row.level,
        master_brand_id=row.master_brand_id,
        product_id=row.product_id,
        ingredient_id=row.ingredient_id,
        scopes=frozenset(scopes),
        description=row.description,
    )


def override_from_row(row: OverrideRow, replacement: ClaimDefinition | None) -> MarketOverride:
    return MarketOverride(
        id=row.id,
        master_claim_id=row.master_claim_id,
        market_scope=row.market_scope,
        target_product_id=row.target_product_id,
        is_blocked=row.is_blocked,
        replacement_claim_id=row.replacement_claim_id,
        replacement=replacement,
    )


def candidate_from_row(row: CandidateRow) -> ScopedCandidate:
    claim = definition_from_row(row.claim, (row.scope,)).scoped(row.scope)
    if row.override is None:
        return ScopedCandidate(claim=claim)
    replacement = None
    if row.replacement is not None:
        scopes = (row.replacement_scope,) if row.replacement_scope else ()
        replacement = definition_from_row(row.replacement, scopes)
    return ScopedCandidate(claim=claim, override=override_from_row(row.override, replacement))
