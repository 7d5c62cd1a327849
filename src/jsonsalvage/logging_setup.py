"""Apply ``LoggingConfig`` to the ``jsonsalvage`` logger tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from jsonsalvage.core.errors import ConfigError

if TYPE_CHECKING:
    from jsonsalvage.config.schema import LoggingConfig

ROOT_LOGGER = "jsonsalvage"


def configure_logging(config: LoggingConfig, *, verbose: bool = False) -> logging.Logger:
    """Attach handlers to the package logger and set its level.

    ``verbose`` forces DEBUG regardless of the configured level. Calling
    this again replaces handlers installed by a previous call.
    """
    level_name = "DEBUG" if verbose else config.level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        msg = f"Unknown log level: {config.level}"
        raise ConfigError(msg)

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_jsonsalvage", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._jsonsalvage = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger
