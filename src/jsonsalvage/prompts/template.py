"""Mustache-style prompt templates dispatched to a chat provider.

A template declares its input variables as ``{{ name }}`` placeholders.
Rendering passes only declared variables through, optionally runs the
text through a post-processing transform, and ``invoke`` sends the
result to a ``ChatProvider`` as a single user message.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from jinja2 import ChainableUndefined, Environment
from jinja2 import TemplateError as JinjaTemplateError

from jsonsalvage.core.errors import TemplateError
from jsonsalvage.providers.base import ChatProvider, PromptMessage

if TYPE_CHECKING:
    from collections.abc import Callable

    from jsonsalvage.providers.base import ModelResponse

logger = logging.getLogger(__name__)

_VARIABLE_RE = re.compile(r"{{\s*([a-zA-Z0-9_]+)\s*}}")


def mustache_environment() -> Environment:
    """Jinja2 environment that only substitutes ``{{ name }}`` placeholders.

    Statement and comment tags move to delimiters no prompt contains, so
    ``{%`` and ``{#`` render literally. No HTML escaping, and undefined
    names (or attributes of them) render empty, as in mustache.
    """
    return Environment(
        autoescape=False,
        keep_trailing_newline=True,
        undefined=ChainableUndefined,
        block_start_string="\x00%",
        block_end_string="%\x00",
        comment_start_string="\x00#",
        comment_end_string="#\x00",
    )


_env = mustache_environment()


def find_template_variables(template: str) -> list[str]:
    """Return placeholder names in order of first appearance, without repeats."""
    return list(dict.fromkeys(_VARIABLE_RE.findall(template)))


class ChatPromptTemplate:
    """Prompt template with declared input variables.

    Build one with :meth:`from_template`, attach a provider (and optionally
    a transform) with :meth:`pipe`, then call :meth:`invoke`.
    """

    def __init__(
        self,
        template: str,
        input_variables: list[str],
        template_format: str = "mustache",
    ) -> None:
        if template_format != "mustache":
            msg = f"Unsupported template format: {template_format}"
            raise TemplateError(msg)
        self.template = template
        self.input_variables = list(input_variables)
        self.template_format = template_format
        self._provider: ChatProvider | None = None
        self._transform: Callable[[str], str] | None = None

    @classmethod
    def from_template(cls, template: str) -> ChatPromptTemplate:
        """Create a template whose input variables are its placeholders."""
        return cls(template, find_template_variables(template))

    @property
    def provider(self) -> ChatProvider | None:
        return self._provider

    def pipe(self, target: ChatProvider | Callable[[str], str]) -> ChatPromptTemplate:
        """Attach a chat provider or a post-processing transform.

        Returns ``self`` so calls can be chained.
        """
        if isinstance(target, ChatProvider):
            self._provider = target
        elif callable(target):
            self._transform = target
        else:
            msg = f"Cannot pipe into {type(target).__name__}"
            raise TemplateError(msg)
        return self

    def format(self, params: dict[str, Any] | None = None, **kwargs: Any) -> str:
        """Render the template with declared variables only.

        Undeclared parameters are dropped; missing ones render empty.
        """
        merged = {**(params or {}), **kwargs}
        allowed = {k: v for k, v in merged.items() if k in self.input_variables}
        dropped = sorted(set(merged) - set(allowed))
        if dropped:
            logger.debug("Ignoring undeclared template parameters: %s", dropped)

        try:
            return _env.from_string(self.template).render(**allowed)
        except JinjaTemplateError as e:
            msg = f"Invalid template: {e}"
            raise TemplateError(msg) from e

    async def invoke(
        self,
        model: str,
        params: dict[str, Any] | None = None,
        **send_kwargs: Any,
    ) -> ModelResponse:
        """Render, transform, and send the prompt to the attached provider.

        Raises:
            TemplateError: If no provider is attached or rendering fails.
            ProviderError: If the provider call fails.
        """
        prompt = self.format(params)
        if self._transform is not None:
            prompt = self._transform(prompt)

        if self._provider is None:
            msg = "Cannot invoke without initializing with a chat provider."
            raise TemplateError(msg)

        messages = [PromptMessage(role="user", content=prompt, name="user")]
        return await self._provider.send(messages, model, **send_kwargs)
