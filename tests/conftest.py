from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from claimstack.adapters.sqlalchemy.migrations import upgrade_head
from claimstack.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClaimsUnitOfWork,
    create_store_engine,
    shutdown,
    startup,
)
from tests.support.claims import FakeClaimStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def claim_store() -> FakeClaimStore:
    store = FakeClaimStore()
    store.add_product()
    return store


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # File-backed: every resolution layer reads through its own connection.
    engine = create_store_engine(f"sqlite+pysqlite:///{tmp_path / 'claims.db'}")
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyClaimsUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyClaimsUnitOfWork:
        return SqlAlchemyClaimsUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
