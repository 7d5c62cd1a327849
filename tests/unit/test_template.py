"""Tests for mustache-style prompt templates."""

from __future__ import annotations

import pytest

from jsonsalvage.core.errors import TemplateError
from jsonsalvage.prompts.template import ChatPromptTemplate, find_template_variables
from jsonsalvage.providers.base import ChatProvider, ModelResponse
from tests.fixtures.providers import MockProvider

# ── find_template_variables ──────────────────────────────────────


class TestFindTemplateVariables:
    def test_single(self) -> None:
        assert find_template_variables("Hello {{name}}") == ["name"]

    def test_whitespace_inside_braces(self) -> None:
        assert find_template_variables("{{ a }} and {{b }}") == ["a", "b"]

    def test_order_and_dedup(self) -> None:
        assert find_template_variables("{{a}} {{ b }} {{a}} {{c_1}}") == ["a", "b", "c_1"]

    def test_none(self) -> None:
        assert find_template_variables("no placeholders {here}") == []

    def test_ignores_non_identifier(self) -> None:
        assert find_template_variables("{{ a.b }} {{ x-y }} {{ok}}") == ["ok"]

    def test_repeatable(self) -> None:
        """No iterator state leaks between calls."""
        template = "{{x}} {{y}}"
        assert find_template_variables(template) == find_template_variables(template)


# ── construction ─────────────────────────────────────────────────


class TestConstruction:
    def test_from_template_discovers_variables(self) -> None:
        prompt = ChatPromptTemplate.from_template("Summarise {{ text }} for {{audience}}")
        assert prompt.input_variables == ["text", "audience"]
        assert prompt.template_format == "mustache"

    def test_explicit_variables(self) -> None:
        prompt = ChatPromptTemplate("{{a}} {{b}}", input_variables=["a"])
        assert prompt.input_variables == ["a"]

    def test_unsupported_format(self) -> None:
        with pytest.raises(TemplateError, match="Unsupported template format"):
            ChatPromptTemplate("x", [], template_format="f-string")


# ── format ───────────────────────────────────────────────────────


class TestFormat:
    def test_substitutes(self) -> None:
        prompt = ChatPromptTemplate.from_template("Hello {{ name }}!")
        assert prompt.format({"name": "Ada"}) == "Hello Ada!"

    def test_kwargs(self) -> None:
        prompt = ChatPromptTemplate.from_template("{{a}}-{{b}}")
        assert prompt.format({"a": "1"}, b="2") == "1-2"

    def test_undeclared_params_dropped(self) -> None:
        prompt = ChatPromptTemplate("{{a}}|{{b}}", input_variables=["a"])
        assert prompt.format({"a": "x", "b": "y"}) == "x|"

    def test_missing_renders_empty(self) -> None:
        prompt = ChatPromptTemplate.from_template("[{{ missing }}]")
        assert prompt.format() == "[]"

    def test_no_html_escaping(self) -> None:
        prompt = ChatPromptTemplate.from_template("{{data}}")
        assert prompt.format(data='{"a": "<b>"}') == '{"a": "<b>"}'

    def test_trailing_newline_kept(self) -> None:
        prompt = ChatPromptTemplate.from_template("{{a}}\n")
        assert prompt.format(a="x") == "x\n"

    @pytest.mark.parametrize(
        "text",
        [
            "Tag: {#id} {{x}}",
            "Use {% raw %} {{x}}",
            "{% if x %}{{x}}{% endif %}",
            "{# note #}{{x}}",
        ],
    )
    def test_statement_and_comment_tags_literal(self, text: str) -> None:
        prompt = ChatPromptTemplate.from_template(text)
        assert prompt.format(x="V") == text.replace("{{x}}", "V")

    def test_attribute_of_missing_renders_empty(self) -> None:
        prompt = ChatPromptTemplate("[{{ user.name }}]", input_variables=[])
        assert prompt.format() == "[]"

    def test_syntax_error_wrapped(self) -> None:
        prompt = ChatPromptTemplate.from_template("{{ a")
        with pytest.raises(TemplateError, match="Invalid template"):
            prompt.format(a="x")


# ── pipe ─────────────────────────────────────────────────────────


class TestPipe:
    def test_mock_satisfies_protocol(self) -> None:
        assert isinstance(MockProvider(), ChatProvider)

    def test_pipe_provider(self) -> None:
        provider = MockProvider()
        prompt = ChatPromptTemplate.from_template("x")
        assert prompt.pipe(provider) is prompt
        assert prompt.provider is provider

    def test_pipe_transform_does_not_replace_provider(self) -> None:
        provider = MockProvider()
        prompt = ChatPromptTemplate.from_template("x").pipe(provider).pipe(str.upper)
        assert prompt.provider is provider

    def test_pipe_rejects_other(self) -> None:
        prompt = ChatPromptTemplate.from_template("x")
        with pytest.raises(TemplateError, match="Cannot pipe into int"):
            prompt.pipe(42)  # type: ignore[arg-type]


# ── invoke ───────────────────────────────────────────────────────


class TestInvoke:
    async def test_sends_user_message(self) -> None:
        provider = MockProvider(reply="done")
        prompt = ChatPromptTemplate.from_template("Classify {{ q }}").pipe(provider)
        response = await prompt.invoke("gpt-test", {"q": "this", "extra": "ignored"})

        assert isinstance(response, ModelResponse)
        assert response.content == "done"
        call = provider.calls[0]
        assert call["model_id"] == "gpt-test"
        (message,) = call["messages"]  # type: ignore[misc]
        assert message.role == "user"
        assert message.name == "user"
        assert message.content == "Classify this"

    async def test_transform_applied_before_send(self) -> None:
        provider = MockProvider()
        prompt = (
            ChatPromptTemplate.from_template("hi {{who}}")
            .pipe(lambda text: text.upper() + "!")
            .pipe(provider)
        )
        await prompt.invoke("m", {"who": "bob"})
        assert provider.calls[0]["messages"][0].content == "HI BOB!"  # type: ignore[index]

    async def test_send_kwargs_forwarded(self) -> None:
        provider = MockProvider()
        prompt = ChatPromptTemplate.from_template("x").pipe(provider)
        await prompt.invoke("m", temperature=0.1, response_format="json")
        assert provider.calls[0]["temperature"] == 0.1
        assert provider.calls[0]["response_format"] == "json"

    async def test_without_provider_raises(self) -> None:
        prompt = ChatPromptTemplate.from_template("x")
        with pytest.raises(TemplateError, match="Cannot invoke without initializing"):
            await prompt.invoke("m", {})
