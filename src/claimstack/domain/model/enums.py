"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ClaimType(StrEnum):
    ALLOWED = "allowed"
    DISALLOWED = "disallowed"
    MANDATORY = "mandatory"
    CONDITIONAL = "conditional"


class FinalClaimType(StrEnum):
    """Outcome type of an effective claim; ``NONE`` marks a suppressed master claim."""

    ALLOWED = "allowed"
    DISALLOWED = "disallowed"
    MANDATORY = "mandatory"
    CONDITIONAL = "conditional"
    NONE = "none"

    @classmethod
    def from_claim_type(cls, claim_type: ClaimType) -> FinalClaimType:
        return cls(claim_type.value)


class ClaimLevel(StrEnum):
    BRAND = "brand"
    PRODUCT = "product"
    INGREDIENT = "ingredient"


class SourceLevel(StrEnum):
    BRAND = "brand"
    PRODUCT = "product"
    INGREDIENT = "ingredient"
    OVERRIDE = "override"
    NONE = "none"

    @classmethod
    def from_claim_level(cls, level: ClaimLevel) -> SourceLevel:
        return cls(level.value)


class ScopeSentinel(StrEnum):
    """Reserved scope values stored next to real country codes.

    ``GLOBAL`` marks a master claim. ``ALL_MARKETS`` is only valid as the market of
    an override. The values are compared verbatim with stored data.
    """

    GLOBAL = "__GLOBAL__"
    ALL_MARKETS = "__ALL_COUNTRIES__"
