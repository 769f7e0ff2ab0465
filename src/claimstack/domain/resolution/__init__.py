"""Claims resolution engine.

One resolution turns the stored claim facts of a product into the claims that apply
to it in one market. The stages are explicit modules so each rule can be tested
without a store:

- ``candidates``: gather brand, product and ingredient claims scoped to the market
- ``overrides``: index the block/replace rules that govern master claims
- ``precedence``: pick one winner per claim text and apply its override
- ``deduplicate``: collapse the final rows by text
- ``engine``: public entry points wiring the stages together
"""

from __future__ import annotations

from .candidates import load_candidate_claims, resolve_scope
from .deduplicate import dedupe_by_final_text
from .engine import (
    get_effective_claims,
    get_effective_claims_async,
    get_effective_claims_single_query,
    validate_inputs,
)
from .errors import (
    ClaimsResolutionError,
    DanglingReferenceError,
    FetchLayer,
    InvalidInputError,
    ProductNotFoundError,
    UpstreamFetchError,
)
from .overrides import build_override_index, load_override_index
from .precedence import resolve

__all__ = [
    "ClaimsResolutionError",
    "DanglingReferenceError",
    "FetchLayer",
    "InvalidInputError",
    "ProductNotFoundError",
    "UpstreamFetchError",
    "build_override_index",
    "dedupe_by_final_text",
    "get_effective_claims",
    "get_effective_claims_async",
    "get_effective_claims_single_query",
    "load_candidate_claims",
    "load_override_index",
    "resolve",
    "resolve_scope",
    "validate_inputs",
]
