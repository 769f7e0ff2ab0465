"""SQLAlchemy adapter package for claimstack."""

from __future__ import annotations

from .mappings import mapper_registry
from .repositories import (
    SqlAlchemyClaimRepository,
    SqlAlchemyMarketOverrideRepository,
    SqlAlchemyProductRepository,
    SqlAlchemyScopedCandidateQuery,
)
from .unit_of_work import (
    SqlAlchemyClaimsUnitOfWork,
    create_store_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyClaimRepository",
    "SqlAlchemyClaimsUnitOfWork",
    "SqlAlchemyMarketOverrideRepository",
    "SqlAlchemyProductRepository",
    "SqlAlchemyScopedCandidateQuery",
    "create_store_engine",
    "mapper_registry",
    "shutdown",
    "startup",
]
