"""Logging setup for batch runs."""

from __future__ import annotations

import logging
from logging import Logger
from typing import Iterable, Optional, Union


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    name: str = "scene_architect",
    propagate: bool = False,
    extra_loggers: Optional[Iterable[str]] = None,
) -> Logger:
    """Attach one stream handler to the package logger and return it.

    Parameters
    ----------
    level: int | str
        Logging verbosity, either numeric or a level name such as ``"DEBUG"``.
    name: str
        Logger namespace; the package name covers every module logger.
    extra_loggers:
        Third-party loggers (``aiohttp.client``, ``openai``) to route through
        the same handler.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    def _attach(target: Logger) -> None:
        if not any(isinstance(existing, logging.StreamHandler) for existing in target.handlers):
            target.addHandler(handler)
        target.setLevel(level)
        target.propagate = propagate

    logger = logging.getLogger(name)
    _attach(logger)
    for logger_name in extra_loggers or ():
        _attach(logging.getLogger(logger_name))
    return logger


__all__ = ["configure_logging"]
