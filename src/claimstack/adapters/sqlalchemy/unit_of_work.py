"""SQLAlchemy-backed read unit of work for claim resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from claimstack.adapters.sqlalchemy.migrations import upgrade_head
from claimstack.adapters.sqlalchemy.repositories import (
    SqlAlchemyClaimRepository,
    SqlAlchemyMarketOverrideRepository,
    SqlAlchemyProductRepository,
    SqlAlchemyScopedCandidateQuery,
)
from claimstack.config import get_database_config
from claimstack.domain.ports import ClaimsRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call claimstack.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def create_store_engine(database_uri: str) -> Engine:
    """Create an engine usable from the resolution worker threads."""

    connect_args: dict[str, object] = {}
    if database_uri.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_uri, future=True, connect_args=connect_args)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, migrate the schema and reset the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_store_engine(database_uri or get_database_config().uri)
    upgrade_head(engine=resolved_engine)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyClaimsUnitOfWork:
    """Read-only session scope; the transaction is always rolled back on exit."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: ClaimsRepositories | None = None

    def __enter__(self) -> SqlAlchemyClaimsUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = ClaimsRepositories(
            products=SqlAlchemyProductRepository(self._session),
            claims=SqlAlchemyClaimRepository(self._session),
            overrides=SqlAlchemyMarketOverrideRepository(self._session),
            scoped_candidates=SqlAlchemyScopedCandidateQuery(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def repositories(self) -> ClaimsRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session


if TYPE_CHECKING:
    from claimstack.domain.ports import ClaimsUnitOfWork

    _uow_check: ClaimsUnitOfWork = SqlAlchemyClaimsUnitOfWork()
