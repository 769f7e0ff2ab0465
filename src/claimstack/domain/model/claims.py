"""Stored claim facts: claim definitions, candidate claims, products, overrides.

Everything in here is read-only input to one resolution pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .enums import ClaimLevel, ClaimType, ScopeSentinel

type EntityId = str


def is_global_scope(scope: str | None) -> bool:
    return scope == ScopeSentinel.GLOBAL


@dataclass(frozen=True, slots=True, kw_only=True)
class ClaimDefinition:
    """A claim as stored, with every scope it is associated with."""

    id: EntityId
    text: str
    claim_type: ClaimType
    level: ClaimLevel
    master_brand_id: EntityId | None = None
    product_id: EntityId | None = None
    ingredient_id: EntityId | None = None
    scopes: frozenset[str] = field(default_factory=frozenset[str])
    description: str | None = None

    @property
    def owner_id(self) -> EntityId | None:
        if self.level is ClaimLevel.PRODUCT:
            return self.product_id
        if self.level is ClaimLevel.INGREDIENT:
            return self.ingredient_id
        return self.master_brand_id

    def scoped(self, scope: str) -> Claim:
        return Claim(
            id=self.id,
            text=self.text,
            claim_type=self.claim_type,
            level=self.level,
            owner_id=self.owner_id,
            scope=scope,
            description=self.description,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Claim:
    """A candidate claim with exactly one resolved scope."""

    id: EntityId
    text: str
    claim_type: ClaimType
    level: ClaimLevel
    scope: str
    owner_id: EntityId | None = None
    description: str | None = None

    @property
    def is_master(self) -> bool:
        return is_global_scope(self.scope)


@dataclass(frozen=True, slots=True, kw_only=True)
class Product:
    id: EntityId
    name: str = ""
    master_brand_id: EntityId | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MarketOverride:
    """Block or replace one master claim for one market or for all markets."""

    id: EntityId
    master_claim_id: EntityId
    market_scope: str
    target_product_id: EntityId
    is_blocked: bool = True
    replacement_claim_id: EntityId | None = None
    replacement: ClaimDefinition | None = None

    @property
    def applies_to_all_markets(self) -> bool:
        return self.market_scope == ScopeSentinel.ALL_MARKETS

    @property
    def has_replacement(self) -> bool:
        return self.replacement_claim_id is not None

    @property
    def is_dangling(self) -> bool:
        return self.replacement_claim_id is not None and self.replacement is None


@dataclass(frozen=True, slots=True, kw_only=True)
class ScopedCandidate:
    """A scoped candidate read by the store together with the override chosen for it."""

    claim: Claim
    override: MarketOverride | None = None
