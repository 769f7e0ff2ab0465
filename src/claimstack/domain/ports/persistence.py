"""Read ports for the stored claim facts.

Implementations raise ``UpstreamFetchError`` when the store cannot answer; an empty
result always means "nothing stored", never "lookup failed".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from claimstack.domain.model import (
        ClaimDefinition,
        EntityId,
        MarketOverride,
        Product,
        ScopedCandidate,
    )


@runtime_checkable
class ProductRepository(Protocol):
    """Products and their ingredient links."""

    def get(self, product_id: EntityId) -> Product | None: ...

    def query(self, *, master_brand_id: EntityId | None = None) -> tuple[Product, ...]: ...

    def ingredient_ids(self, product_id: EntityId) -> tuple[EntityId, ...]: ...


@runtime_checkable
class ClaimRepository(Protocol):
    """Claim definitions per owning entity.

    ``scopes`` restricts the scope associations that are loaded; a definition without
    any matching association is not returned.
    """

    def for_product(
        self, product_id: EntityId, *, scopes: Collection[str]
    ) -> tuple[ClaimDefinition, ...]: ...

    def for_ingredients(
        self, ingredient_ids: Collection[EntityId], *, scopes: Collection[str]
    ) -> tuple[ClaimDefinition, ...]: ...

    def for_brand(
        self, master_brand_id: EntityId, *, scopes: Collection[str]
    ) -> tuple[ClaimDefinition, ...]: ...


@runtime_checkable
class MarketOverrideRepository(Protocol):
    """Override rules, with the replacement claim joined when it exists."""

    def for_product(
        self, product_id: EntityId, *, markets: Collection[str]
    ) -> tuple[MarketOverride, ...]: ...


@runtime_checkable
class ScopedCandidateQuery(Protocol):
    """Every scoped candidate of a product with the override chosen for it, in one read."""

    def for_product(
        self, product_id: EntityId, country_code: str
    ) -> tuple[ScopedCandidate, ...]: ...
