"""Shared test fixtures for jsonsalvage."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from jsonsalvage.config.loader import CONFIG_ENV_VAR, ENV_SETTINGS
from jsonsalvage.logging_setup import ROOT_LOGGER


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Any:
    """Drop handlers the CLI installs so they never outlive a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_config(tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Empty working directory and no jsonsalvage or OpenAI env settings."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    for var in ENV_SETTINGS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return tmp_path

