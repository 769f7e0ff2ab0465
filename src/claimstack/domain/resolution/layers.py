"""Run one store read in a worker thread with the configured retry policy."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import UpstreamFetchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimstack.config.resolution import LayerRetryPolicy

    from .errors import FetchLayer

log = getLogger(__name__)


async def fetch_with_retry[T](
    layer: FetchLayer,
    fetch: Callable[[], T],
    *,
    retry: LayerRetryPolicy,
) -> T:
    """Run ``fetch`` off the event loop, retrying ``UpstreamFetchError`` only."""

    attempt = 1
    while True:
        delay = retry.delay_before(attempt)
        if delay:
            await asyncio.sleep(delay)
        try:
            return await asyncio.to_thread(fetch)
        except UpstreamFetchError as exc:
            if attempt >= retry.attempts:
                raise
            log.warning(
                "Retrying %s fetch (attempt %s of %s): %s",
                layer.value,
                attempt + 1,
                retry.attempts,
                exc,
            )
            attempt += 1


async def fetch_or_default[T](
    layer: FetchLayer,
    fetch: Callable[[], T],
    *,
    retry: LayerRetryPolicy,
    default: T,
    context: str,
) -> T:
    """Like ``fetch_with_retry`` but degrade to ``default`` when the layer fails."""

    try:
        return await fetch_with_retry(layer, fetch, retry=retry)
    except UpstreamFetchError as exc:
        log.error("Treating %s as empty for %s: %s", layer.value, context, exc)  # noqa: TRY400
        return default


def event_loop_is_running() -> bool:
    """True when called from code already running inside an event loop."""

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
