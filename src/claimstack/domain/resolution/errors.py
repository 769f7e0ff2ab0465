"""Error taxonomy of the claims resolution engine.

None of these escape ``get_effective_claims``; they mark the expected failure modes
that the engine logs and degrades on.
"""

from __future__ import annotations

from enum import StrEnum


class FetchLayer(StrEnum):
    """Store reads performed during one resolution."""

    PRODUCT = "product"
    PRODUCT_CLAIMS = "product_claims"
    INGREDIENT_LINKS = "ingredient_links"
    INGREDIENT_CLAIMS = "ingredient_claims"
    BRAND_CLAIMS = "brand_claims"
    OVERRIDES = "overrides"
    SCOPED_CANDIDATES = "scoped_candidates"
    PRODUCTS = "products"


class ClaimsResolutionError(RuntimeError):
    """Base class for resolution failures."""


class InvalidInputError(ClaimsResolutionError, ValueError):
    """Raised when a resolution is requested without product id or country code."""

    def __init__(self, *, missing: tuple[str, ...]) -> None:
        self.missing = missing
        super().__init__(f"Missing required input: {', '.join(missing)}")


class ProductNotFoundError(ClaimsResolutionError):
    """Raised when the product cannot be loaded; the resolution cannot continue."""

    def __init__(self, product_id: str, *, reason: str = "not found") -> None:
        self.product_id = product_id
        self.reason = reason
        super().__init__(f"Product {product_id} could not be resolved: {reason}")


class UpstreamFetchError(ClaimsResolutionError):
    """Raised by adapters when the store fails to answer a read."""

    def __init__(self, layer: FetchLayer, message: str) -> None:
        self.layer = layer
        super().__init__(f"{layer.value} fetch failed: {message}")


class DanglingReferenceError(ClaimsResolutionError):
    """Raised when an override points at a replacement claim that does not exist."""

    def __init__(self, *, override_id: str, replacement_claim_id: str) -> None:
        self.override_id = override_id
        self.replacement_claim_id = replacement_claim_id
        super().__init__(
            f"Override {override_id} references missing replacement claim "
            f"{replacement_claim_id}"
        )
