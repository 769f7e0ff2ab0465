"""Domain model for claim resolution."""

from __future__ import annotations

from .claims import (
    Claim,
    ClaimDefinition,
    EntityId,
    MarketOverride,
    Product,
    ScopedCandidate,
    is_global_scope,
)
from .effective import EffectiveClaim, normalize_claim_text
from .enums import ClaimLevel, ClaimType, FinalClaimType, ScopeSentinel, SourceLevel

__all__ = [
    "Claim",
    "ClaimDefinition",
    "ClaimLevel",
    "ClaimType",
    "EffectiveClaim",
    "EntityId",
    "FinalClaimType",
    "MarketOverride",
    "Product",
    "ScopeSentinel",
    "ScopedCandidate",
    "SourceLevel",
    "is_global_scope",
    "normalize_claim_text",
]
