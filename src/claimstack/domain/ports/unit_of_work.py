"""Unit-of-work abstractions for coordinating read repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from claimstack.domain.ports.persistence import (
        ClaimRepository,
        MarketOverrideRepository,
        ProductRepository,
        ScopedCandidateQuery,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class ReadUnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Read-only session boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> ReadUnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...


@dataclass(slots=True)
class ClaimsRepositories(RepositoryCollection):
    """Repositories required to resolve effective claims."""

    products: ProductRepository
    claims: ClaimRepository
    overrides: MarketOverrideRepository
    scoped_candidates: ScopedCandidateQuery


type ClaimsUnitOfWork = ReadUnitOfWork[ClaimsRepositories]
type ClaimsUnitOfWorkFactory = Callable[[], ClaimsUnitOfWork]
