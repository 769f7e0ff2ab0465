"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from claimstack.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClaimsUnitOfWork,
    is_started,
    startup,
)
from claimstack.config import get_resolution_config
from claimstack.domain.matrix import build_claims_matrix
from claimstack.domain.resolution import (
    get_effective_claims,
    get_effective_claims_single_query,
)

if TYPE_CHECKING:
    from claimstack.config import ResolutionConfig
    from claimstack.domain.matrix import ClaimsMatrix
    from claimstack.domain.model import EffectiveClaim
    from claimstack.domain.ports import ClaimsUnitOfWorkFactory


log = getLogger(__name__)


def _ensure_started(unit_of_work_factory: ClaimsUnitOfWorkFactory | None) -> None:
    if unit_of_work_factory is None and not is_started():
        startup()


def lookup_effective_claims(
    product_id: str,
    country_code: str,
    *,
    single_query: bool = False,
    unit_of_work_factory: ClaimsUnitOfWorkFactory | None = None,
    config: ResolutionConfig | None = None,
) -> list[EffectiveClaim]:
    """Resolve the effective claims of one product against the configured store."""

    _ensure_started(unit_of_work_factory)
    effective_uow = unit_of_work_factory or SqlAlchemyClaimsUnitOfWork
    settings = config or get_resolution_config()
    resolver = get_effective_claims_single_query if single_query else get_effective_claims
    log.info(
        "Resolving claims: product=%s, country=%s, single_query=%s",
        product_id,
        country_code,
        single_query,
    )
    return resolver(
        product_id,
        country_code,
        unit_of_work_factory=effective_uow,
        config=settings,
    )


def build_matrix(
    country_code: str,
    *,
    master_brand_id: str | None = None,
    unit_of_work_factory: ClaimsUnitOfWorkFactory | None = None,
    config: ResolutionConfig | None = None,
) -> ClaimsMatrix:
    """Build the claims matrix of every branded product for one market."""

    _ensure_started(unit_of_work_factory)
    return build_claims_matrix(
        country_code,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyClaimsUnitOfWork,
        master_brand_id=master_brand_id,
        config=config or get_resolution_config(),
    )
