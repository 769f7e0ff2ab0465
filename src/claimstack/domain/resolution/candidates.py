"""Claim source aggregation.

Responsibilities of this stage:
- load claim definitions owned by the product, its ingredients and its brand
- resolve each definition to one scope for the requested country
- drop definitions that apply neither to the country nor globally

Each level is fetched independently; a failing level contributes no candidates and
does not affect the others. Only the product lookup itself is fatal.
"""

from __future__ import annotations

import asyncio
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from claimstack.config.resolution import LayerRetryPolicy
from claimstack.domain.model import ScopeSentinel

from .errors import FetchLayer, ProductNotFoundError, UpstreamFetchError
from .layers import fetch_or_default, fetch_with_retry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from claimstack.domain.model import Claim, ClaimDefinition, EntityId, Product
    from claimstack.domain.ports import ClaimsUnitOfWorkFactory

log = getLogger(__name__)


def candidate_scopes(country_code: str) -> tuple[str, str]:
    return (country_code, ScopeSentinel.GLOBAL.value)


def resolve_scope(definition: ClaimDefinition, country_code: str) -> Claim | None:
    """Pick the scope a definition takes in ``country_code``.

    A country association wins over a global one; without either the definition is
    not a candidate.
    """

    if country_code in definition.scopes:
        return definition.scoped(country_code)
    if ScopeSentinel.GLOBAL in definition.scopes:
        return definition.scoped(ScopeSentinel.GLOBAL.value)
    return None


def candidates_from_definitions(
    definitions: Iterable[ClaimDefinition],
    country_code: str,
) -> list[Claim]:
    """Scope-resolve definitions, keeping each claim id once."""

    seen: set[EntityId] = set()
    candidates: list[Claim] = []
    for definition in definitions:
        if definition.id in seen:
            continue
        seen.add(definition.id)
        claim = resolve_scope(definition, country_code)
        if claim is not None:
            candidates.append(claim)
    return candidates


def fetch_product(unit_of_work_factory: ClaimsUnitOfWorkFactory, product_id: EntityId) -> Product:
    with unit_of_work_factory() as uow:
        product = uow.repositories.products.get(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def fetch_product_claims(
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    product_id: EntityId,
    country_code: str,
) -> tuple[ClaimDefinition, ...]:
    with unit_of_work_factory() as uow:
        return uow.repositories.claims.for_product(
            product_id, scopes=candidate_scopes(country_code)
        )


def fetch_ingredient_ids(
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    product_id: EntityId,
) -> tuple[EntityId, ...]:
    with unit_of_work_factory() as uow:
        return uow.repositories.products.ingredient_ids(product_id)


def fetch_ingredient_claims(
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    ingredient_ids: tuple[EntityId, ...],
    country_code: str,
) -> tuple[ClaimDefinition, ...]:
    if not ingredient_ids:
        return ()
    with unit_of_work_factory() as uow:
        return uow.repositories.claims.for_ingredients(
            ingredient_ids, scopes=candidate_scopes(country_code)
        )


def fetch_brand_claims(
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    master_brand_id: EntityId | None,
    country_code: str,
) -> tuple[ClaimDefinition, ...]:
    if master_brand_id is None:
        return ()
    with unit_of_work_factory() as uow:
        return uow.repositories.claims.for_brand(
            master_brand_id, scopes=candidate_scopes(country_code)
        )


async def load_product(
    product_id: EntityId,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    retry: LayerRetryPolicy,
) -> Product:
    """Load the product or raise ``ProductNotFoundError`` (also when the read fails)."""

    try:
        return await fetch_with_retry(
            FetchLayer.PRODUCT,
            partial(fetch_product, unit_of_work_factory, product_id),
            retry=retry,
        )
    except UpstreamFetchError as exc:
        raise ProductNotFoundError(product_id, reason=str(exc)) from exc


async def load_candidate_claims(
    product_id: EntityId,
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    retry: LayerRetryPolicy | None = None,
    product: Product | None = None,
) -> list[Claim]:
    """Return product, ingredient and brand candidates for one market.

    Pass an already loaded ``product`` to skip the product lookup.
    """

    policy = retry or LayerRetryPolicy()
    if product is None:
        product = await load_product(
            product_id, unit_of_work_factory=unit_of_work_factory, retry=policy
        )
    context = f"product {product.id} in {country_code}"

    async with asyncio.TaskGroup() as group:
        product_level = group.create_task(
            fetch_or_default(
                FetchLayer.PRODUCT_CLAIMS,
                partial(fetch_product_claims, unit_of_work_factory, product.id, country_code),
                retry=policy,
                default=(),
                context=context,
            )
        )
        ingredient_level = group.create_task(
            _load_ingredient_claims(
                product.id,
                country_code,
                unit_of_work_factory=unit_of_work_factory,
                retry=policy,
                context=context,
            )
        )
        brand_level = group.create_task(
            fetch_or_default(
                FetchLayer.BRAND_CLAIMS,
                partial(
                    fetch_brand_claims,
                    unit_of_work_factory,
                    product.master_brand_id,
                    country_code,
                ),
                retry=policy,
                default=(),
                context=context,
            )
        )

    definitions = (*product_level.result(), *ingredient_level.result(), *brand_level.result())
    candidates = candidates_from_definitions(definitions, country_code)
    log.debug(
        "Loaded %s candidate claims (%s definitions) for %s",
        len(candidates),
        len(definitions),
        context,
    )
    return candidates


async def _load_ingredient_claims(
    product_id: EntityId,
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    retry: LayerRetryPolicy,
    context: str,
) -> tuple[ClaimDefinition, ...]:
    ingredient_ids: tuple[EntityId, ...] = await fetch_or_default(
        FetchLayer.INGREDIENT_LINKS,
        partial(fetch_ingredient_ids, unit_of_work_factory, product_id),
        retry=retry,
        default=(),
        context=context,
    )
    if not ingredient_ids:
        return ()
    return await fetch_or_default(
        FetchLayer.INGREDIENT_CLAIMS,
        partial(fetch_ingredient_claims, unit_of_work_factory, ingredient_ids, country_code),
        retry=retry,
        default=(),
        context=context,
    )
