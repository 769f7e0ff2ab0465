"""Read repositories backed by SQLAlchemy sessions.

Every read wraps ``SQLAlchemyError`` in ``UpstreamFetchError`` tagged with the layer
being fetched, so the engine can degrade that layer alone.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import (
    String,
    and_,
    case,
    cast,
    func,
    literal,
    null,
    select,
    union_all,
)
from sqlalchemy.exc import SQLAlchemyError

from claimstack.adapters.sqlalchemy.mappings import (
    ID_LENGTH,
    claim_country_table,
    claim_ingredient_table,
    claim_product_table,
    claim_table,
    market_claim_override_table,
    product_ingredient_table,
    product_table,
)
from claimstack.adapters.sqlalchemy.schema import (
    CandidateRow,
    ClaimRow,
    OverrideRow,
    ProductRow,
    ScopeRow,
)
from claimstack.adapters.sqlalchemy.translator import (
    candidate_from_row,
    definition_from_row,
    override_from_row,
    product_from_row,
    validate_rows,
)
from claimstack.domain.model import ClaimLevel, ScopeSentinel
from claimstack.domain.resolution.errors import FetchLayer, UpstreamFetchError

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Mapping, Sequence

    from sqlalchemy import ColumnElement, Label, Select
    from sqlalchemy.orm import Session
    from sqlalchemy.sql.selectable import NamedFromClause

    from claimstack.domain.model import (
        ClaimDefinition,
        EntityId,
        MarketOverride,
        Product,
        ScopedCandidate,
    )

CANDIDATE_PREFIX = "candidate__"
OVERRIDE_PREFIX = "override__"
REPLACEMENT_PREFIX = "replacement__"


@contextmanager
def _store_errors(layer: FetchLayer) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise UpstreamFetchError(layer, str(exc)) from exc


def _level_is(claim: NamedFromClause, level: ClaimLevel) -> ColumnElement[bool]:
    return func.lower(claim.c.level) == level.value


def _claim_columns(claim: NamedFromClause, prefix: str = "") -> list[Label[object]]:
    return [
        claim.c.id.label(f"{prefix}id"),
        claim.c.claim_text.label(f"{prefix}claim_text"),
        claim.c.claim_type.label(f"{prefix}claim_type"),
        claim.c.level.label(f"{prefix}level"),
        claim.c.master_brand_id.label(f"{prefix}master_brand_id"),
        claim.c.description.label(f"{prefix}description"),
    ]


def _owner_columns(claim: NamedFromClause, prefix: str) -> list[Label[object]]:
    """Owning product and ingredient of a claim reached by id rather than by owner."""

    product_id = (
        select(func.min(claim_product_table.c.product_id))
        .where(claim_product_table.c.claim_id == claim.c.id)
        .scalar_subquery()
    )
    ingredient_id = (
        select(func.min(claim_ingredient_table.c.ingredient_id))
        .where(claim_ingredient_table.c.claim_id == claim.c.id)
        .scalar_subquery()
    )
    return [
        product_id.label(f"{prefix}product_id"),
        ingredient_id.label(f"{prefix}ingredient_id"),
    ]


def _scope_in(claim_id: ColumnElement[str], country_code: str) -> ColumnElement[str | None]:
    """The scope a claim takes in ``country_code``: the country, else global, else NULL."""

    def has_scope(scope: str) -> ColumnElement[bool]:
        return (
            select(claim_country_table.c.claim_id)
            .where(claim_country_table.c.claim_id == claim_id)
            .where(claim_country_table.c.country_code == scope)
            .exists()
        )

    global_scope = ScopeSentinel.GLOBAL.value
    return case(
        (has_scope(country_code), literal(country_code)),
        (has_scope(global_scope), literal(global_scope)),
        else_=null(),
    )


def _unprefixed(row: Mapping[str, object], prefix: str) -> dict[str, object]:
    return {key.removeprefix(prefix): value for key, value in row.items() if key.startswith(prefix)}


class SqlAlchemyProductRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, product_id: EntityId) -> Product | None:
        stmt = select(
            product_table.c.id, product_table.c.name, product_table.c.master_brand_id
        ).where(product_table.c.id == product_id)
        with _store_errors(FetchLayer.PRODUCT):
            rows = self.session.execute(stmt).mappings().all()
        for row in validate_rows(ProductRow, rows, context=f"product {product_id}"):
            return product_from_row(row)
        return None

    def query(self, *, master_brand_id: EntityId | None = None) -> tuple[Product, ...]:
        stmt = select(
            product_table.c.id, product_table.c.name, product_table.c.master_brand_id
        ).order_by(product_table.c.name, product_table.c.id)
        if master_brand_id is not None:
            stmt = stmt.where(product_table.c.master_brand_id == master_brand_id)
        with _store_errors(FetchLayer.PRODUCTS):
            rows = self.session.execute(stmt).mappings().all()
        return tuple(
            product_from_row(row) for row in validate_rows(ProductRow, rows, context="products")
        )

    def ingredient_ids(self, product_id: EntityId) -> tuple[EntityId, ...]:
        stmt = (
            select(product_ingredient_table.c.ingredient_id)
            .where(product_ingredient_table.c.product_id == product_id)
            .order_by(product_ingredient_table.c.ingredient_id)
        )
        with _store_errors(FetchLayer.INGREDIENT_LINKS):
            return tuple(self.session.execute(stmt).scalars().all())


class SqlAlchemyClaimRepository:
    """Claim definitions per owner, with their scope associations restricted to ``scopes``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def for_product(
        self, product_id: EntityId, *, scopes: Collection[str]
    ) -> tuple[ClaimDefinition, ...]:
        stmt = (
            select(*_claim_columns(claim_table), claim_product_table.c.product_id)
            .join_from(
                claim_table,
                claim_product_table,
                claim_product_table.c.claim_id == claim_table.c.id,
            )
            .where(claim_product_table.c.product_id == product_id)
            .where(_level_is(claim_table, ClaimLevel.PRODUCT))
            .order_by(claim_table.c.id)
        )
        return self._definitions(
            stmt,
            scopes=scopes,
            layer=FetchLayer.PRODUCT_CLAIMS,
            context=f"product {product_id}",
        )

    def for_ingredients(
        self, ingredient_ids: Collection[EntityId], *, scopes: Collection[str]
    ) -> tuple[ClaimDefinition, ...]:
        if not ingredient_ids:
            return ()
        stmt = (
            select(*_claim_columns(claim_table), claim_ingredient_table.c.ingredient_id)
            .join_from(
                claim_table,
                claim_ingredient_table,
                claim_ingredient_table.c.claim_id == claim_table.c.id,
            )
            .where(claim_ingredient_table.c.ingredient_id.in_(list(ingredient_ids)))
            .where(_level_is(claim_table, ClaimLevel.INGREDIENT))
            .order_by(claim_table.c.id, claim_ingredient_table.c.ingredient_id)
        )
        return self._definitions(
            stmt,
            scopes=scopes,
            layer=FetchLayer.INGREDIENT_CLAIMS,
            context=f"{len(ingredient_ids)} ingredients",
        )

    def for_brand(
        self, master_brand_id: EntityId, *, scopes: Collection[str]
    ) -> tuple[ClaimDefinition, ...]:
        stmt = (
            select(*_claim_columns(claim_table))
            .where(claim_table.c.master_brand_id == master_brand_id)
            .where(_level_is(claim_table, ClaimLevel.BRAND))
            .order_by(claim_table.c.id)
        )
        return self._definitions(
            stmt,
            scopes=scopes,
            layer=FetchLayer.BRAND_CLAIMS,
            context=f"brand {master_brand_id}",
        )

    def _definitions(
        self,
        stmt: Select[tuple[object, ...]],
        *,
        scopes: Collection[str],
        layer: FetchLayer,
        context: str,
    ) -> tuple[ClaimDefinition, ...]:
        with _store_errors(layer):
            rows = self.session.execute(stmt).mappings().all()
            scope_map = load_scopes(
                self.session, [row["id"] for row in rows], scopes=scopes, context=context
            )

        definitions: dict[EntityId, ClaimDefinition] = {}
        for row in validate_rows(ClaimRow, rows, context=context):
            claim_scopes = scope_map.get(row.id)
            if row.id in definitions or not claim_scopes:
                continue
            definitions[row.id] = definition_from_row(row, claim_scopes)
        return tuple(definitions.values())


def load_scopes(
    session: Session,
    claim_ids: Sequence[EntityId],
    *,
    scopes: Collection[str] | None = None,
    context: str,
) -> dict[EntityId, set[str]]:
    """Scope associations per claim id; ``scopes=None`` loads all of them."""

    if not claim_ids:
        return {}
    stmt = select(claim_country_table.c.claim_id, claim_country_table.c.country_code).where(
        claim_country_table.c.claim_id.in_(list(dict.fromkeys(claim_ids)))
    )
    if scopes is not None:
        stmt = stmt.where(claim_country_table.c.country_code.in_(list(scopes)))
    rows = session.execute(stmt).mappings().all()
    scope_map: dict[EntityId, set[str]] = {}
    for row in validate_rows(ScopeRow, rows, context=context):
        scope_map.setdefault(row.claim_id, set()).add(row.country_code)
    return scope_map


class SqlAlchemyMarketOverrideRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def for_product(
        self, product_id: EntityId, *, markets: Collection[str]
    ) -> tuple[MarketOverride, ...]:
        override = market_claim_override_table
        replacement = claim_table.alias("replacement")
        stmt = (
            select(
                override,
                *_claim_columns(replacement, REPLACEMENT_PREFIX),
                *_owner_columns(replacement, REPLACEMENT_PREFIX),
            )
            .select_from(
                override.outerjoin(replacement, replacement.c.id == override.c.replacement_claim_id)
            )
            .where(override.c.target_product_id == product_id)
            .where(override.c.market_country_code.in_(list(markets)))
            .order_by(override.c.id)
        )
        context = f"overrides of product {product_id}"
        with _store_errors(FetchLayer.OVERRIDES):
            rows = self.session.execute(stmt).mappings().all()
            replacement_ids = [
                row[f"{REPLACEMENT_PREFIX}id"]
                for row in rows
                if row[f"{REPLACEMENT_PREFIX}id"] is not None
            ]
            scope_map = load_scopes(self.session, replacement_ids, context=context)

        overrides: list[MarketOverride] = []
        for row in rows:
            validated = next(validate_rows(OverrideRow, (row,), context=context), None)
            if validated is None:
                continue
            replacement_definition = None
            replacement_row = _unprefixed(row, REPLACEMENT_PREFIX)
            if replacement_row["id"] is not None:
                for claim_row in validate_rows(ClaimRow, (replacement_row,), context=context):
                    replacement_definition = definition_from_row(
                        claim_row, scope_map.get(claim_row.id, ())
                    )
            overrides.append(override_from_row(validated, replacement_definition))
        return tuple(overrides)


class SqlAlchemyScopedCandidateQuery:
    """Scoped candidates and the override chosen for each, in one statement."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def for_product(
        self, product_id: EntityId, country_code: str
    ) -> tuple[ScopedCandidate, ...]:
        context = f"product {product_id} in {country_code}"
        with _store_errors(FetchLayer.SCOPED_CANDIDATES):
            rows = self.session.execute(candidates_statement(product_id, country_code)).mappings()
            payloads = [_candidate_payload(row) for row in rows]
        return tuple(
            candidate_from_row(row)
            for row in validate_rows(CandidateRow, payloads, context=context)
        )


def candidates_statement(product_id: EntityId, country_code: str) -> Select[tuple[object, ...]]:
    """Every scoped candidate with its chosen override and that override's replacement.

    Rows come ordered by claim id, then ingredient id, so a claim reached through
    several ingredients appears first with its lowest ingredient id. Picking one
    winner per claim text is left to the caller, which normalizes text in Python.
    A country override outranks an all-markets override for the same master claim.
    """

    global_scope = ScopeSentinel.GLOBAL.value
    no_id = cast(null(), String(ID_LENGTH))
    brand_id = (
        select(product_table.c.master_brand_id)
        .where(product_table.c.id == product_id)
        .scalar_subquery()
    )

    product_claims = (
        select(
            claim_table.c.id.label("claim_id"),
            claim_product_table.c.product_id.label("product_id"),
            no_id.label("ingredient_id"),
        )
        .join_from(
            claim_table, claim_product_table, claim_product_table.c.claim_id == claim_table.c.id
        )
        .where(claim_product_table.c.product_id == product_id)
        .where(_level_is(claim_table, ClaimLevel.PRODUCT))
    )
    ingredient_claims = (
        select(
            claim_table.c.id.label("claim_id"),
            no_id.label("product_id"),
            claim_ingredient_table.c.ingredient_id.label("ingredient_id"),
        )
        .join_from(
            claim_table,
            claim_ingredient_table,
            claim_ingredient_table.c.claim_id == claim_table.c.id,
        )
        .join(
            product_ingredient_table,
            product_ingredient_table.c.ingredient_id == claim_ingredient_table.c.ingredient_id,
        )
        .where(product_ingredient_table.c.product_id == product_id)
        .where(_level_is(claim_table, ClaimLevel.INGREDIENT))
    )
    brand_claims = (
        select(
            claim_table.c.id.label("claim_id"),
            no_id.label("product_id"),
            no_id.label("ingredient_id"),
        )
        .where(claim_table.c.master_brand_id == brand_id)
        .where(_level_is(claim_table, ClaimLevel.BRAND))
    )
    sources = union_all(product_claims, ingredient_claims, brand_claims).cte("claim_source")

    scoped = select(
        sources.c.claim_id,
        sources.c.product_id,
        sources.c.ingredient_id,
        _scope_in(sources.c.claim_id, country_code).label("scope"),
    ).cte("scoped_claim")

    candidate = (
        select(
            *_claim_columns(claim_table),
            scoped.c.product_id,
            scoped.c.ingredient_id,
            scoped.c.scope,
        )
        .join_from(scoped, claim_table, claim_table.c.id == scoped.c.claim_id)
        .where(scoped.c.scope.is_not(None))
        .cte("candidate_claim")
    )

    override = market_claim_override_table
    ranked_override = (
        select(
            override,
            func.row_number()
            .over(
                partition_by=override.c.master_claim_id,
                order_by=(
                    case((override.c.market_country_code == country_code, 0), else_=1),
                    override.c.id,
                ),
            )
            .label("override_rank"),
        )
        .where(override.c.target_product_id == product_id)
        .where(
            override.c.market_country_code.in_(
                [country_code, ScopeSentinel.ALL_MARKETS.value]
            )
        )
        .cte("ranked_override")
    )

    replacement = claim_table.alias("replacement")
    return (
        select(
            *(column.label(f"{CANDIDATE_PREFIX}{column.name}") for column in candidate.c),
            *(column.label(f"{OVERRIDE_PREFIX}{column.name}") for column in ranked_override.c),
            *_claim_columns(replacement, REPLACEMENT_PREFIX),
            *_owner_columns(replacement, REPLACEMENT_PREFIX),
            _scope_in(replacement.c.id, country_code).label("replacement_scope"),
        )
        .select_from(
            candidate.outerjoin(
                ranked_override,
                and_(
                    ranked_override.c.master_claim_id == candidate.c.id,
                    ranked_override.c.override_rank == 1,
                    candidate.c.scope == global_scope,
                ),
            ).outerjoin(replacement, replacement.c.id == ranked_override.c.replacement_claim_id)
        )
        .order_by(candidate.c.id, candidate.c.ingredient_id)
    )


def _candidate_payload(row: Mapping[str, object]) -> dict[str, object]:
    claim = _unprefixed(row, CANDIDATE_PREFIX)
    override = _unprefixed(row, OVERRIDE_PREFIX)
    replacement = _unprefixed(row, REPLACEMENT_PREFIX)
    return {
        "claim": claim,
        "scope": claim["scope"],
        "override": override if override["id"] is not None else None,
        "replacement": replacement if replacement["id"] is not None else None,
        "replacement_scope": row["replacement_scope"],
    }
