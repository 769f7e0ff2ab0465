"""Public entry points of the claims resolution engine.

Flow of one resolution:
1) guard the inputs (no store access when product id or country code is missing)
2) load the product; failure aborts the resolution
3) fan out: product/ingredient/brand candidates and the override index load
   concurrently inside one task group, each read in its own unit of work
4) fan in: precedence, then final-text deduplication

Cancelling the call, or exceeding ``ResolutionConfig.timeout_seconds``, cancels every
pending read together. Callers always receive a list; failures are only visible in
the logs.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from claimstack.config.resolution import ResolutionConfig

from .candidates import load_candidate_claims, load_product
from .deduplicate import dedupe_by_final_text
from .errors import FetchLayer, InvalidInputError, ProductNotFoundError, UpstreamFetchError
from .layers import event_loop_is_running, fetch_with_retry
from .overrides import load_override_index
from .precedence import resolve

if TYPE_CHECKING:
    from claimstack.domain.model import (
        Claim,
        EffectiveClaim,
        EntityId,
        MarketOverride,
        ScopedCandidate,
    )
    from claimstack.domain.ports import ClaimsUnitOfWorkFactory

log = getLogger(__name__)


def validate_inputs(product_id: EntityId | None, country_code: str | None) -> None:
    missing = tuple(
        name
        for name, value in (("product_id", product_id), ("country_code", country_code))
        if not value or not value.strip()
    )
    if missing:
        raise InvalidInputError(missing=missing)


def _inputs_are_valid(product_id: EntityId | None, country_code: str | None) -> bool:
    try:
        validate_inputs(product_id, country_code)
    except InvalidInputError as exc:
        for name in exc.missing:
            log.error("Cannot resolve effective claims: %s is required", name)
        return False
    return True


def _can_block(product_id: EntityId, country_code: str) -> bool:
    if not event_loop_is_running():
        return True
    log.error(
        "Cannot resolve claims for %s in %s from a running event loop; "
        "await get_effective_claims_async instead",
        product_id,
        country_code,
    )
    return False


def get_effective_claims(
    product_id: EntityId,
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    config: ResolutionConfig | None = None,
) -> list[EffectiveClaim]:
    """Return the effective claims of a product in one market.

    Inside a running event loop this logs an error and returns ``[]``; await
    ``get_effective_claims_async`` there.
    """

    if not _inputs_are_valid(product_id, country_code) or not _can_block(
        product_id, country_code
    ):
        return []
    return asyncio.run(
        get_effective_claims_async(
            product_id,
            country_code,
            unit_of_work_factory=unit_of_work_factory,
            config=config,
        )
    )


async def get_effective_claims_async(
    product_id: EntityId,
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    config: ResolutionConfig | None = None,
) -> list[EffectiveClaim]:
    if not _inputs_are_valid(product_id, country_code):
        return []

    settings = config or ResolutionConfig()
    try:
        async with asyncio.timeout(settings.timeout_seconds):
            product = await load_product(
                product_id,
                unit_of_work_factory=unit_of_work_factory,
                retry=settings.retry,
            )
            async with asyncio.TaskGroup() as group:
                candidates_task = group.create_task(
                    load_candidate_claims(
                        product_id,
                        country_code,
                        unit_of_work_factory=unit_of_work_factory,
                        retry=settings.retry,
                        product=product,
                    )
                )
                overrides_task = group.create_task(
                    load_override_index(
                        product_id,
                        country_code,
                        unit_of_work_factory=unit_of_work_factory,
                        retry=settings.retry,
                    )
                )
    except ProductNotFoundError as exc:
        log.error(  # noqa: TRY400
            "Aborting claim resolution for %s in %s: %s", product_id, country_code, exc
        )
        return []
    except TimeoutError:
        log.error(  # noqa: TRY400
            "Claim resolution for %s in %s timed out after %ss",
            product_id,
            country_code,
            settings.timeout_seconds,
        )
        return []
    except Exception:
        log.exception("Unexpected error resolving claims for %s in %s", product_id, country_code)
        return []

    candidates = candidates_task.result()
    overrides = overrides_task.result()
    rows = resolve(candidates, overrides, product_id=product_id, country_code=country_code)
    result = dedupe_by_final_text(rows)
    log.debug(
        "Resolved claims for %s in %s: candidates=%s, overrides=%s, rows=%s, out=%s",
        product_id,
        country_code,
        len(candidates),
        len(overrides),
        len(rows),
        len(result),
    )
    return result


def get_effective_claims_single_query(
    product_id: EntityId,
    country_code: str,
    *,
    unit_of_work_factory: ClaimsUnitOfWorkFactory,
    config: ResolutionConfig | None = None,
) -> list[EffectiveClaim]:
    """Resolve with one store round-trip.

    The store returns every scoped candidate joined with its applicable override.
    Winners are then picked with ``select_winners``, the same fold the layered path
    uses, and the rows still pass through ``dedupe_by_final_text``.
    """

    if not _inputs_are_valid(product_id, country_code) or not _can_block(
        product_id, country_code
    ):
        return []

    settings = config or ResolutionConfig()

    def fetch() -> tuple[ScopedCandidate, ...]:
        with unit_of_work_factory() as uow:
            return uow.repositories.scoped_candidates.for_product(product_id, country_code)

    async def fetch_candidates() -> tuple[ScopedCandidate, ...]:
        async with asyncio.timeout(settings.timeout_seconds):
            return await fetch_with_retry(
                FetchLayer.SCOPED_CANDIDATES, fetch, retry=settings.retry
            )

    try:
        candidates = asyncio.run(fetch_candidates())
    except UpstreamFetchError as exc:
        log.error(  # noqa: TRY400
            "Single-query resolution failed for %s in %s: %s", product_id, country_code, exc
        )
        return []
    except TimeoutError:
        log.error(  # noqa: TRY400
            "Single-query resolution for %s in %s timed out", product_id, country_code
        )
        return []
    except Exception:
        log.exception("Unexpected error resolving claims for %s in %s", product_id, country_code)
        return []

    overrides: dict[EntityId, MarketOverride] = {}
    claims: dict[EntityId, Claim] = {}
    for candidate in candidates:
        if candidate.claim.id in claims:
            continue
        claims[candidate.claim.id] = candidate.claim
        if candidate.override is not None:
            overrides[candidate.claim.id] = candidate.override
    rows = resolve(claims.values(), overrides, product_id=product_id, country_code=country_code)
    return dedupe_by_final_text(rows)
