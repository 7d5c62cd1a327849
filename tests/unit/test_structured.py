"""Tests for schema-guided structured output."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from jsonsalvage.prompts.structured import (
    ValidationResult,
    json_schema_for,
    structured_output_instructions,
    validated_output,
)
from tests.fixtures.schemas import Item, Taxonomy

# ── json_schema_for ──────────────────────────────────────────────


class TestJsonSchema:
    def test_model_schema(self) -> None:
        schema = json_schema_for(Taxonomy)
        assert schema["type"] == "object"
        assert set(schema["required"]) == {"intent", "category"}
        assert "genus" in schema["properties"]

    def test_list_schema(self) -> None:
        schema = json_schema_for(list[Item])
        assert schema["type"] == "array"


# ── structured_output_instructions ───────────────────────────────


class TestInstructions:
    def test_embeds_schema(self) -> None:
        text = structured_output_instructions(Item)({"x": 1})
        assert f"```json\n{json.dumps(json_schema_for(Item))}\n```" in text

    def test_embeds_serialised_data(self) -> None:
        text = structured_output_instructions(Item)({"title": "Dune", "year": 1965})
        assert '```\n{"title": "Dune", "year": 1965}\n```' in text

    def test_example_braces_literal(self) -> None:
        text = structured_output_instructions(Item)(None)
        assert 'the object {"foo": ["bar", "baz"]} is a well-formatted instance' in text
        assert "{%" not in text

    def test_none_data(self) -> None:
        text = structured_output_instructions(Item)(None)
        assert "```\nnull\n```" in text

    def test_no_html_escaping(self) -> None:
        text = structured_output_instructions(Item)({"q": "<a & b>"})
        assert "<a & b>" in text

    def test_description_included(self) -> None:
        text = structured_output_instructions(Item)({})
        assert "Free-form labels" in text

    def test_renderer_reusable(self) -> None:
        render = structured_output_instructions(Taxonomy)
        assert "[1]" in render([1])
        assert "[2]" in render([2])


# ── validated_output ─────────────────────────────────────────────


class TestValidatedOutput:
    def test_success(self) -> None:
        text = 'Here you go:\n```json\n{"intent": "factual", "category": "science"}\n```'
        result = validated_output(Taxonomy, text)
        assert isinstance(result, ValidationResult)
        assert result.success is True
        assert isinstance(result.data, Taxonomy)
        assert result.data.intent == "factual"
        assert result.data.genus is None
        assert result.error is None
        assert result.errors() == []
        assert result.raw == {"intent": "factual", "category": "science"}

    def test_list_schema(self) -> None:
        result = validated_output(list[Item], '[{"name": "a"}, {"name": "b", "tags": ["x"]}]')
        assert result.success is True
        assert [item.name for item in result.data] == ["a", "b"]
        assert result.data[1].tags == ["x"]

    def test_schema_mismatch(self) -> None:
        result = validated_output(Taxonomy, '{"wrong": "fields"}')
        assert result.success is False
        assert result.data is None
        assert isinstance(result.error, ValidationError)
        missing = {err["loc"][0] for err in result.errors()}
        assert missing == {"intent", "category"}
        assert result.raw == {"wrong": "fields"}

    def test_no_json_does_not_raise(self) -> None:
        result = validated_output(Taxonomy, "I cannot answer that.")
        assert result.success is False
        assert result.raw == {}

    def test_truncated_recovers(self) -> None:
        result = validated_output(Taxonomy, '{"intent": "judgment", "category": "ethics"')
        assert result.success is True
        assert result.data.category == "ethics"

    def test_result_is_frozen(self) -> None:
        result = validated_output(Taxonomy, "{}")
        with pytest.raises(AttributeError):
            result.success = True  # type: ignore[misc]
