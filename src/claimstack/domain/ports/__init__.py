"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    ClaimRepository,
    MarketOverrideRepository,
    ProductRepository,
    ScopedCandidateQuery,
)
from .unit_of_work import (
    ClaimsRepositories,
    ClaimsUnitOfWork,
    ClaimsUnitOfWorkFactory,
    ReadUnitOfWork,
    RepositoryCollection,
)

__all__ = [
    "ClaimRepository",
    "ClaimsRepositories",
    "ClaimsUnitOfWork",
    "ClaimsUnitOfWorkFactory",
    "MarketOverrideRepository",
    "ProductRepository",
    "ReadUnitOfWork",
    "RepositoryCollection",
    "ScopedCandidateQuery",
]
