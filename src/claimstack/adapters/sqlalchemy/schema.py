"""Pydantic models validating rows read from the claim store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claimstack.domain.model import ClaimLevel, ClaimType


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _lower(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class StoreRowModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ProductRow(StoreRowModel):
    id: str
    name: str = ""
    master_brand_id: str | None = None

    _normalize_brand = field_validator("master_brand_id", mode="before")(_blank_to_none)

    @field_validator("name", mode="before")
    @classmethod
    def _name_or_empty(cls, value: object) -> object:
        return "" if value is None else value


class ClaimRow(StoreRowModel):
    """One claim, optionally with the owner it was reached through."""

    id: str
    text: str = Field(alias="claim_text")
    claim_type: ClaimType
    level: ClaimLevel
    master_brand_id: str | None = None
    product_id: str | None = None
    ingredient_id: str | None = None
    description: str | None = None

    _normalize_ids = field_validator(
        "master_brand_id", "product_id", "ingredient_id", mode="before"
    )(_blank_to_none)
    _normalize_description = field_validator("description", mode="before")(_blank_to_none)
    _normalize_enums = field_validator("claim_type", "level", mode="before")(_lower)


class ScopeRow(StoreRowModel):
    claim_id: str
    country_code: str


class OverrideRow(StoreRowModel):
    id: str
    master_claim_id: str
    market_scope: str = Field(alias="market_country_code")
    target_product_id: str
    is_blocked: bool = True
    replacement_claim_id: str | None = None

    _normalize_replacement = field_validator("replacement_claim_id", mode="before")(
        _blank_to_none
    )

    @field_validator("is_blocked", mode="before")
    @classmethod
    def _null_means_blocked(cls, value: object) -> object:
        return True if value is None else value


class CandidateRow(StoreRowModel):
    """A scoped candidate with the columns of its chosen override and replacement."""

    claim: ClaimRow
    scope: str
    override: OverrideRow | None = None
    replacement: ClaimRow | None = None
    replacement_scope: str | None = None
