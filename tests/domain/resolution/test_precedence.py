from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from claimstack.domain.model import ClaimLevel, ClaimType, FinalClaimType, SourceLevel
from claimstack.domain.resolution import build_override_index, resolve
from claimstack.domain.resolution.precedence import override_for, priority, select_winners
from tests.support.claims import (
    ALL_MARKETS,
    COUNTRY,
    GLOBAL,
    PRODUCT_ID,
    make_definition,
    make_override,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimstack.domain.model import Claim, EffectiveClaim, MarketOverride


def _resolve(
    candidates: list[Claim], overrides: Sequence[MarketOverride] = ()
) -> list[EffectiveClaim]:
    return resolve(
        candidates,
        build_override_index(overrides, COUNTRY),
        product_id=PRODUCT_ID,
        country_code=COUNTRY,
    )


def test_market_scope_outranks_any_level() -> None:
    market_brand = make_definition("b1", "Vegan", level=ClaimLevel.BRAND).scoped(COUNTRY)
    master_product = make_definition("p1", "Vegan", level=ClaimLevel.PRODUCT).scoped(GLOBAL)

    assert priority(market_brand) > priority(master_product)


def test_level_breaks_ties_within_scope() -> None:
    product = make_definition("p1", "Vegan", level=ClaimLevel.PRODUCT).scoped(GLOBAL)
    ingredient = make_definition("i1", "Vegan", level=ClaimLevel.INGREDIENT).scoped(GLOBAL)
    brand = make_definition("b1", "vegan ", level=ClaimLevel.BRAND).scoped(GLOBAL)

    winners = select_winners([brand, ingredient, product])

    assert [claim.id for claim in winners] == ["p1"]


def test_claim_id_breaks_full_ties() -> None:
    later = make_definition("c2", "Vegan").scoped(GLOBAL)
    earlier = make_definition("c1", "VEGAN").scoped(GLOBAL)

    assert [claim.id for claim in select_winners([later, earlier])] == ["c1"]


def test_global_claim_without_override_is_master_derived() -> None:
    claim = make_definition("m1", "Vegan").scoped(GLOBAL)

    (row,) = _resolve([claim])

    assert row.is_master_derived
    assert row.source_level is SourceLevel.PRODUCT
    assert row.final_type is FinalClaimType.ALLOWED
    assert row.source_claim_id == "m1"


def test_market_beats_master_on_same_text() -> None:
    market = make_definition("b1", "Vegan", level=ClaimLevel.BRAND).scoped(COUNTRY)
    master = make_definition("p1", "vegan", level=ClaimLevel.PRODUCT).scoped(GLOBAL)

    (row,) = _resolve([master, market])

    assert row.source_claim_id == "b1"
    assert row.source_level is not SourceLevel.OVERRIDE
    assert row.original_scope == COUNTRY
    assert not row.is_master_derived


def test_market_claims_are_never_overridden() -> None:
    market = make_definition("c1", "Vegan").scoped(COUNTRY)
    override = make_override("ov-1", "c1")

    assert override_for(market, {"c1": override}) is None
    (row,) = _resolve([market], [override])
    assert not row.is_override
    assert row.final_type is FinalClaimType.ALLOWED


def test_blocking_override_suppresses_master() -> None:
    master = make_definition("m1", "Vegan").scoped(GLOBAL)

    (row,) = _resolve([master], [make_override("ov-1", "m1", market=ALL_MARKETS)])

    assert row.final_type is FinalClaimType.NONE
    assert row.source_level is SourceLevel.OVERRIDE
    assert row.is_blocked_override
    assert row.overridden_master_claim_id == "m1"
    assert row.override_rule_id == "ov-1"
    assert row.text == "Vegan"


def test_replacement_override_substitutes_claim() -> None:
    master = make_definition("m1", "Vegan").scoped(GLOBAL)
    replacement = make_definition(
        "r1", "Plant based", claim_type=ClaimType.CONDITIONAL, scopes=(COUNTRY,)
    )

    (row,) = _resolve([master], [make_override("ov-1", "m1", replacement=replacement)])

    assert row.text == "Plant based"
    assert row.final_type is FinalClaimType.CONDITIONAL
    assert row.source_level is SourceLevel.OVERRIDE
    assert row.is_replacement_override
    assert row.overridden_master_claim_id == "m1"
    assert row.source_claim_id == "r1"
    assert row.original_text == "Vegan"
    assert row.original_scope == COUNTRY


def test_replacement_applies_even_when_not_flagged_blocked() -> None:
    master = make_definition("m1", "Vegan").scoped(GLOBAL)
    replacement = make_definition("r1", "Plant based")

    (row,) = _resolve(
        [master], [make_override("ov-1", "m1", is_blocked=False, replacement=replacement)]
    )

    assert row.is_replacement_override


def test_unblocked_override_without_replacement_is_inert() -> None:
    master = make_definition("m1", "Vegan").scoped(GLOBAL)

    (row,) = _resolve([master], [make_override("ov-1", "m1", is_blocked=False)])

    assert row.is_master_derived
    assert not row.is_override


def test_dangling_replacement_degrades_to_blocked(caplog: pytest.LogCaptureFixture) -> None:
    master = make_definition("m1", "Vegan").scoped(GLOBAL)
    dangling = make_override("ov-1", "m1", replacement_claim_id="gone")

    with caplog.at_level(logging.WARNING):
        (row,) = _resolve([master], [dangling])

    assert row.is_blocked_override
    assert row.final_type is FinalClaimType.NONE
    assert "replacement claim missing" in (row.description or "")
    assert "references missing replacement claim gone" in caplog.text


def test_one_row_per_text_group() -> None:
    candidates = [
        make_definition("a", "Vegan").scoped(GLOBAL),
        make_definition("b", " vegan").scoped(COUNTRY),
        make_definition("c", "Gentle").scoped(GLOBAL),
    ]

    rows = _resolve(candidates)

    assert sorted(row.source_claim_id or "" for row in rows) == ["b", "c"]
