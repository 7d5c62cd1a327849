"""Exception hierarchy for jsonsalvage.

Every module imports from here. The hierarchy is:

    SalvageError
    ├── ProviderError(provider_id)
    │   ├── ProviderAuthError
    │   ├── ProviderRateLimitError(retry_after)
    │   ├── ProviderTimeoutError
    │   ├── ProviderOverloadedError
    │   └── ModelNotFoundError
    ├── TemplateError
    └── ConfigError

The extractor in ``jsonsalvage.parsing`` raises none of these; it
absorbs every failure and returns an empty mapping.
"""

from __future__ import annotations


class SalvageError(Exception):
    """Base exception for all jsonsalvage errors."""


# ─── Provider Errors ──────────────────────────────────────────


class ProviderError(SalvageError):
    """Base for provider-related errors."""

    def __init__(self, provider_id: str, message: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"[{provider_id}] {message}")


class ProviderAuthError(ProviderError):
    """Invalid or missing API key."""


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded. Includes retry_after if available."""

    def __init__(self, provider_id: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        msg = "Rate limited"
        if retry_after is not None:
            msg += f" (retry after {retry_after}s)"
        super().__init__(provider_id, msg)


class ProviderTimeoutError(ProviderError):
    """Model call timed out."""


class ProviderOverloadedError(ProviderError):
    """Provider is overloaded (529, 503)."""


class ModelNotFoundError(ProviderError):
    """Requested model not available from this provider."""


# ─── Template Errors ──────────────────────────────────────────


class TemplateError(SalvageError):
    """Template could not be rendered or invoked."""


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(SalvageError):
    """Invalid configuration."""
