"""Precedence: one winning candidate per claim text, then the override layer.

Responsibilities of this stage:
- rank candidates (market scope first, then product > ingredient > brand)
- fold the ranked candidates into one winner per normalized text
- turn every winner into an ``EffectiveClaim``, consulting the override index for
  master claims only

This stage performs no I/O and never raises for data problems. A replacement claim
may carry a text that collides with another group; ``dedupe_by_final_text`` settles
those collisions afterwards.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from claimstack.domain.model import (
    ClaimLevel,
    EffectiveClaim,
    FinalClaimType,
    ScopeSentinel,
    SourceLevel,
    normalize_claim_text,
)

from .candidates import resolve_scope
from .errors import DanglingReferenceError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from claimstack.domain.model import Claim, ClaimDefinition, EntityId, MarketOverride

log = getLogger(__name__)

MARKET_SCOPE_WEIGHT: Final[int] = 10
LEVEL_WEIGHT: Final[Mapping[ClaimLevel, int]] = {
    ClaimLevel.PRODUCT: 3,
    ClaimLevel.INGREDIENT: 2,
    ClaimLevel.BRAND: 1,
}


def priority(claim: Claim) -> int:
    """Scope weight dominates; level weight only separates equal scopes."""

    scope_weight = 0 if claim.is_master else MARKET_SCOPE_WEIGHT
    return scope_weight + LEVEL_WEIGHT[claim.level]


def select_winners(candidates: Iterable[Claim]) -> list[Claim]:
    """Return the highest-priority candidate of every normalized text.

    Candidates are visited in descending priority (claim id breaks ties), so the
    first candidate to reach a text resolves it and later ones are discarded.
    """

    ranked = sorted(candidates, key=lambda claim: (-priority(claim), claim.id))
    winners: dict[str, Claim] = {}
    for claim in ranked:
        winners.setdefault(normalize_claim_text(claim.text), claim)
    return list(winners.values())


def override_for(
    claim: Claim,
    overrides: Mapping[EntityId, MarketOverride],
) -> MarketOverride | None:
    """Return the override governing ``claim``.

    Only master claims are overridable: a market-scoped claim is never looked up,
    even when an override happens to reference its id.
    """

    if not claim.is_master:
        return None
    return overrides.get(claim.id)


def resolve(
    candidates: Iterable[Claim],
    overrides: Mapping[EntityId, MarketOverride],
    *,
    product_id: EntityId,
    country_code: str,
) -> list[EffectiveClaim]:
    return [
        effective_claim_for(
            winner,
            override_for(winner, overrides),
            product_id=product_id,
            country_code=country_code,
        )
        for winner in select_winners(candidates)
    ]


def effective_claim_for(
    winner: Claim,
    override: MarketOverride | None,
    *,
    product_id: EntityId,
    country_code: str,
) -> EffectiveClaim:
    if override is None or not (override.is_blocked or override.has_replacement):
        return _base_claim(winner, product_id=product_id, country_code=country_code)

    if not override.has_replacement:
        return _blocked_claim(winner, override, product_id=product_id, country_code=country_code)

    try:
        replacement = _replacement_for(override)
    except DanglingReferenceError as exc:
        log.warning("Data integrity: %s; treating master claim %s as blocked", exc, winner.id)
        return _blocked_claim(
            winner,
            override,
            product_id=product_id,
            country_code=country_code,
            description=(
                f'Master claim "{winner.text}" intended for replacement in {country_code} '
                "but replacement claim missing. Considered blocked."
            ),
        )
    return _replacement_claim(
        winner,
        replacement,
        override,
        product_id=product_id,
        country_code=country_code,
    )


def _replacement_for(override: MarketOverride) -> ClaimDefinition:
    if override.replacement is None:
        raise DanglingReferenceError(
            override_id=override.id,
            replacement_claim_id=override.replacement_claim_id or "",
        )
    return override.replacement


def _base_claim(claim: Claim, *, product_id: EntityId, country_code: str) -> EffectiveClaim:
    return EffectiveClaim(
        text=claim.text,
        final_type=FinalClaimType.from_claim_type(claim.claim_type),
        source_level=SourceLevel.from_claim_level(claim.level),
        source_claim_id=claim.id,
        applies_to_product_id=product_id,
        applies_to_country=country_code,
        is_master_derived=claim.is_master,
        description=claim.description,
        original_scope=claim.scope,
        source_entity_id=claim.owner_id,
        original_text=claim.text,
    )


def _blocked_claim(
    master: Claim,
    override: MarketOverride,
    *,
    product_id: EntityId,
    country_code: str,
    description: str | None = None,
) -> EffectiveClaim:
    if description is None:
        where = "globally" if override.applies_to_all_markets else f"in {country_code}"
        description = f'Master claim "{master.text}" blocked {where} for product {product_id}.'
    return EffectiveClaim(
        text=master.text,
        final_type=FinalClaimType.NONE,
        source_level=SourceLevel.OVERRIDE,
        source_claim_id=override.id,
        applies_to_product_id=product_id,
        applies_to_country=country_code,
        is_blocked_override=True,
        overridden_master_claim_id=master.id,
        description=description,
        original_scope=ScopeSentinel.GLOBAL.value,
        original_text=master.text,
        override_rule_id=override.id,
    )


def _replacement_claim(
    master: Claim,
    replacement: ClaimDefinition,
    override: MarketOverride,
    *,
    product_id: EntityId,
    country_code: str,
) -> EffectiveClaim:
    description = replacement.description
    if description is None:
        where = "globally" if override.applies_to_all_markets else f"in {country_code}"
        description = f'Master claim "{master.text}" replaced {where} by "{replacement.text}".'
    return EffectiveClaim(
        text=replacement.text,
        final_type=FinalClaimType.from_claim_type(replacement.claim_type),
        source_level=SourceLevel.OVERRIDE,
        source_claim_id=replacement.id,
        applies_to_product_id=product_id,
        applies_to_country=country_code,
        is_replacement_override=True,
        overridden_master_claim_id=master.id,
        description=description,
        original_scope=_replacement_scope(replacement, country_code),
        source_entity_id=replacement.owner_id,
        original_text=master.text,
        override_rule_id=override.id,
    )


def _replacement_scope(replacement: ClaimDefinition, country_code: str) -> str | None:
    scoped = resolve_scope(replacement, country_code)
    return scoped.scope if scoped is not None else None
