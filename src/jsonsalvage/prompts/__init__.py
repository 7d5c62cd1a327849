"""Prompt templates and schema-guided output helpers."""

from jsonsalvage.prompts.structured import (
    ValidationResult,
    json_schema_for,
    structured_output_instructions,
    validated_output,
)
from jsonsalvage.prompts.template import ChatPromptTemplate, find_template_variables

__all__ = [
    "ChatPromptTemplate",
    "ValidationResult",
    "find_template_variables",
    "json_schema_for",
    "structured_output_instructions",
    "validated_output",
]
