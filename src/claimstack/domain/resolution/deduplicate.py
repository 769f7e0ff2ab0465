"""Final-text deduplication of effective claims.

Responsibilities of this stage:
- collapse rows whose trimmed, case-folded text collides
- prefer override rows, then market-specific rows, then master rows
- within one precedence class prefer product over ingredient over brand

The stage is idempotent (ordering included), so it can be applied to any source of
rows, whether they were produced in Python or selected by the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from itertools import count
from typing import TYPE_CHECKING, Final

from claimstack.domain.model import SourceLevel

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from claimstack.domain.model import EffectiveClaim


class PrecedenceClass(IntEnum):
    """Lower values win a text collision."""

    OVERRIDE = 1
    MARKET = 2
    MASTER = 3


LEVEL_SCORE: Final[Mapping[SourceLevel, int]] = {
    SourceLevel.PRODUCT: 3,
    SourceLevel.INGREDIENT: 2,
    SourceLevel.BRAND: 1,
}


def precedence_class(row: EffectiveClaim) -> PrecedenceClass:
    if row.is_override:
        return PrecedenceClass.OVERRIDE
    if row.is_market_specific:
        return PrecedenceClass.MARKET
    return PrecedenceClass.MASTER


def level_score(row: EffectiveClaim) -> int:
    return LEVEL_SCORE.get(row.source_level, 0)


@dataclass(slots=True, frozen=True)
class _Kept:
    row: EffectiveClaim
    precedence: PrecedenceClass
    score: int
    normalized_text: str
    key: str

    def beaten_by(self, other: _Kept) -> bool:
        if other.precedence != self.precedence:
            return other.precedence < self.precedence
        return other.score > self.score

    def sort_key(self) -> tuple[int, int, str, str]:
        return (self.precedence, -self.score, self.normalized_text, self.key)


def dedupe_by_final_text(rows: Iterable[EffectiveClaim]) -> list[EffectiveClaim]:
    """Keep one row per normalized text.

    Rows with blank text never collide with each other: they are keyed by their
    override rule id, then their source claim id, then their position.
    """

    fallback = count()
    kept: dict[str, _Kept] = {}
    for row in rows:
        normalized = row.normalized_text
        key = normalized or _fallback_key(row, fallback)
        incoming = _Kept(
            row=row,
            precedence=precedence_class(row),
            score=level_score(row),
            normalized_text=normalized,
            key=key,
        )
        existing = kept.get(key)
        if existing is None or existing.beaten_by(incoming):
            kept[key] = incoming

    return [entry.row for entry in sorted(kept.values(), key=_Kept.sort_key)]


def _fallback_key(row: EffectiveClaim, fallback: count[int]) -> str:
    identifier = row.override_rule_id or row.source_claim_id
    if identifier:
        return f"\x00{identifier}"
    return f"\x00__fallback-{next(fallback):08d}"
