"""Effective claims: the computed, never persisted, outcome of a resolution."""

from __future__ import annotations

from dataclasses import dataclass

from .claims import is_global_scope
from .enums import FinalClaimType, SourceLevel


def normalize_claim_text(text: str | None) -> str:
    """Return the comparison key for claim text (trimmed, case-folded)."""

    return (text or "").strip().casefold()


@dataclass(frozen=True, slots=True, kw_only=True)
class EffectiveClaim:
    text: str
    final_type: FinalClaimType
    source_level: SourceLevel
    applies_to_product_id: str
    applies_to_country: str
    source_claim_id: str | None = None
    is_master_derived: bool = False
    is_blocked_override: bool = False
    is_replacement_override: bool = False
    overridden_master_claim_id: str | None = None
    description: str | None = None
    original_scope: str | None = None
    source_entity_id: str | None = None
    original_text: str | None = None
    override_rule_id: str | None = None

    @property
    def normalized_text(self) -> str:
        return normalize_claim_text(self.text)

    @property
    def is_override(self) -> bool:
        return self.is_blocked_override or self.is_replacement_override

    @property
    def is_market_specific(self) -> bool:
        if self.original_scope is not None:
            return not is_global_scope(self.original_scope)
        return not self.is_master_derived
