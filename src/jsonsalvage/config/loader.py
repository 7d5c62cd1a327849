"""Configuration loading.

Settings come from at most one TOML file, the first that exists of:

    1. the ``path`` argument (``--config`` on the command line)
    2. the file named by ``$JSONSALVAGE_CONFIG``
    3. ``./jsonsalvage.toml``
    4. the ``[tool.jsonsalvage]`` table of ``./pyproject.toml``

The file's ``[provider]`` and ``[logging]`` tables feed ``ProviderConfig``
and ``LoggingConfig``. ``JSONSALVAGE_MODEL``, ``JSONSALVAGE_BASE_URL``,
``JSONSALVAGE_LOG_LEVEL`` and ``JSONSALVAGE_LOG_FILE`` override single
settings, and ``overrides`` passed to ``load_config`` win over both. The
API key falls back to the variable named by ``provider.api_key_env``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from jsonsalvage.core.errors import ConfigError

from .schema import LoggingConfig, ProviderConfig, SalvageConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "JSONSALVAGE_CONFIG"
PROJECT_FILE = "jsonsalvage.toml"
PYPROJECT_FILE = "pyproject.toml"

_SECTIONS: dict[str, type[BaseModel]] = {
    "provider": ProviderConfig,
    "logging": LoggingConfig,
}

# env var -> (section, field)
ENV_SETTINGS: dict[str, tuple[str, str]] = {
    "JSONSALVAGE_MODEL": ("provider", "default_model"),
    "JSONSALVAGE_BASE_URL": ("provider", "base_url"),
    "JSONSALVAGE_LOG_LEVEL": ("logging", "level"),
    "JSONSALVAGE_LOG_FILE": ("logging", "file"),
}


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e


def _file_settings(path: str | Path | None) -> tuple[Path | None, dict[str, Any]]:
    """Pick the config file and return its settings tables."""
    if path is not None:
        p = Path(path)
        if not p.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        return p, _read_toml(p)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if not p.is_file():
            msg = f"{CONFIG_ENV_VAR} points to non-existent file: {env_path}"
            raise ConfigError(msg)
        return p, _read_toml(p)

    project = Path.cwd() / PROJECT_FILE
    if project.is_file():
        return project, _read_toml(project)

    pyproject = Path.cwd() / PYPROJECT_FILE
    if pyproject.is_file():
        table = _read_toml(pyproject).get("tool", {}).get("jsonsalvage")
        if table is not None:
            if not isinstance(table, dict):
                msg = f"[tool.jsonsalvage] in {pyproject} must be a table"
                raise ConfigError(msg)
            return pyproject, table

    return None, {}


def _env_settings() -> dict[str, dict[str, str]]:
    settings: dict[str, dict[str, str]] = {}
    for var, (section, name) in ENV_SETTINGS.items():
        value = os.environ.get(var)
        if value:
            settings.setdefault(section, {})[name] = value
    return settings


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SalvageConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file; when given no other file is read.
        overrides: Per-section settings applied last, e.g.
            ``{"provider": {"max_tokens": 256}}``.

    Returns:
        Validated SalvageConfig instance.

    Raises:
        ConfigError: On a missing or unreadable file, invalid TOML, a
            section that is not a table, or a setting that fails validation.
    """
    source, file_data = _file_settings(path)
    where = f" in {source}" if source is not None else ""

    unknown = sorted(set(file_data) - set(_SECTIONS))
    if unknown:
        logger.warning("Ignoring unknown config sections%s: %s", where, unknown)

    layers = (file_data, _env_settings(), overrides or {})
    sections: dict[str, BaseModel] = {}
    for name, model in _SECTIONS.items():
        values: dict[str, Any] = {}
        for layer in layers:
            table = layer.get(name, {})
            if not isinstance(table, dict):
                msg = f"[{name}]{where} must be a table, got {type(table).__name__}"
                raise ConfigError(msg)
            values.update(table)
        try:
            sections[name] = model.model_validate(values)
        except ValidationError as e:
            msg = f"Invalid [{name}] settings{where}: {e}"
            raise ConfigError(msg) from e

    config = SalvageConfig.model_validate(sections)
    provider = config.provider
    if provider.api_key is None and provider.api_key_env:
        provider.api_key = os.environ.get(provider.api_key_env)
    return config
