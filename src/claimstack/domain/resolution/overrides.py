"""Override index: which block/replace rule applies to each master claim.

A rule for the requested country always shadows an all-markets rule for the same
master claim. Between rules of the same kind the first one seen is kept.
"""

from __future__ import annotations

from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from claimstack.config.resolution import LayerRetryPolicy
from claimstack.domain.model import ScopeSentinel

from .errors import FetchLayer
from .layers import fetch_or_default

if TYPE_CHECKING:
    from collections.abc import Iterable

    from claimstack.domain.model import EntityId, MarketOverride
    from claimstack.domain.ports import ClaimsUnitOfWorkFactory

log = getLogger(__name__)

type OverrideIndex = dict[EntityId, MarketOverride]


def override_markets(country_code: str) -> tuple[str, str]:
    return (country_code, ScopeSentinel.ALL_MARKETS.value)


def build_override_index(
    overrides: Iterable[MarketOverride],
    country_code: str,
) -> OverrideIndex:
    index: OverrideIndex = {}
    for override in overrides:
        if override.market_scope not in override_markets(country_code):
            continue
        current = index.get(override.master_claim_id)
        if current is None:
            index[override.master_claim_id] = override
            continue
        if current.applies_to_all_markets and override.market_scope == country_code:
            log.debug(
                "Override %s for %s shadows all-markets override %s",
                override.id,
                country_code,
                current.id,
            )
            index[override.master_claim_id] = override
    return index


def fetch_overrides(
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    product_id: EntityId,
    country_code: str,
) -> tuple[MarketOverride, ...]:
    with unit_of_work_factory() as uow:
        return uow.repositories.overrides.for_product(
            product_id, markets=override_markets(country_code)
        )


async def load_override_index(
    product_id: EntityId,
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    retry: LayerRetryPolicy | None = None,
) -> OverrideIndex:
    overrides = await fetch_or_default(
        FetchLayer.OVERRIDES,
        partial(fetch_overrides, unit_of_work_factory, product_id, country_code),
        retry=retry or LayerRetryPolicy(),
        default=(),
        context=f"product {product_id} in {country_code}",
    )
    return build_override_index(overrides, country_code)
