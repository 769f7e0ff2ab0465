"""Seed a migrated SQLite claim store with Core inserts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import insert

from claimstack.adapters.sqlalchemy.mappings import (
    claim_country_table,
    claim_ingredient_table,
    claim_product_table,
    claim_table,
    ingredient_table,
    market_claim_override_table,
    master_claim_brand_table,
    product_ingredient_table,
    product_table,
)
from claimstack.domain.model import ClaimLevel, ClaimType, ScopeSentinel
from tests.support.claims import BRAND_ID, COUNTRY, INGREDIENT_ID, PRODUCT_ID

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import Table
    from sqlalchemy.engine import Engine


@dataclass(slots=True)
class StoreSeeder:
    engine: Engine
    _ingredients: set[str] = field(default_factory=set[str])

    def _insert(self, table: Table, *rows: dict[str, object]) -> None:
        if not rows:
            return
        with self.engine.begin() as connection:
            connection.execute(insert(table), list(rows))

    def brand(self, brand_id: str = BRAND_ID, *, name: str = "Acme") -> None:
        self._insert(master_claim_brand_table, {"id": brand_id, "name": name})

    def product(
        self,
        product_id: str = PRODUCT_ID,
        *,
        name: str = "Gentle Cleanser",
        master_brand_id: str | None = BRAND_ID,
        ingredient_ids: Iterable[str] = (INGREDIENT_ID,),
    ) -> None:
        self._insert(
            product_table,
            {"id": product_id, "name": name, "master_brand_id": master_brand_id},
        )
        for ingredient_id in ingredient_ids:
            if ingredient_id not in self._ingredients:
                self._ingredients.add(ingredient_id)
                self._insert(ingredient_table, {"id": ingredient_id, "name": ingredient_id})
            self._insert(
                product_ingredient_table,
                {"product_id": product_id, "ingredient_id": ingredient_id},
            )

    def claim(  # noqa: PLR0913
        self,
        claim_id: str,
        text: str,
        *,
        level: ClaimLevel | str = ClaimLevel.PRODUCT,
        claim_type: ClaimType | str = ClaimType.ALLOWED,
        scopes: Iterable[str] = (ScopeSentinel.GLOBAL,),
        owner_id: str | None = None,
        description: str | None = None,
    ) -> None:
        """Store a claim, its owner link and its scopes.

        ``level`` and ``claim_type`` are written verbatim so malformed rows can be seeded.
        """

        kind = str(level).strip().lower()
        self._insert(
            claim_table,
            {
                "id": claim_id,
                "claim_text": text,
                "claim_type": str(claim_type),
                "level": str(level),
                "master_brand_id": (owner_id or BRAND_ID) if kind == ClaimLevel.BRAND else None,
                "description": description,
            },
        )
        if kind == ClaimLevel.PRODUCT:
            self._insert(
                claim_product_table,
                {"claim_id": claim_id, "product_id": owner_id or PRODUCT_ID},
            )
        elif kind == ClaimLevel.INGREDIENT:
            self._insert(
                claim_ingredient_table,
                {"claim_id": claim_id, "ingredient_id": owner_id or INGREDIENT_ID},
            )
        self._insert(
            claim_country_table,
            *({"claim_id": claim_id, "country_code": str(scope)} for scope in scopes),
        )

    def override(  # noqa: PLR0913
        self,
        override_id: str,
        master_claim_id: str,
        *,
        market: str = COUNTRY,
        product_id: str = PRODUCT_ID,
        is_blocked: bool = True,
        replacement_claim_id: str | None = None,
    ) -> None:
        self._insert(
            market_claim_override_table,
            {
                "id": override_id,
                "master_claim_id": master_claim_id,
                "market_country_code": str(market),
                "target_product_id": product_id,
                "is_blocked": is_blocked,
                "replacement_claim_id": replacement_claim_id,
            },
        )
