"""Shared logging helpers for claimstack."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

LOG_LEVEL_ENV = "CLAIMSTACK_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    ``level`` falls back to ``CLAIMSTACK_LOG_LEVEL`` and then to INFO. Pass
    ``force=True`` to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ConfigurationError(f"Unknown log level: {level!r}")
    return resolved
