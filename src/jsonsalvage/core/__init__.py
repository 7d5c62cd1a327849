"""Core types and errors."""

from jsonsalvage.core.errors import (
    ConfigError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    SalvageError,
    TemplateError,
)

__all__ = [
    "ConfigError",
    "ModelNotFoundError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderOverloadedError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "SalvageError",
    "TemplateError",
]
