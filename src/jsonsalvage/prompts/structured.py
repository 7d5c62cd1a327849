"""Schema-guided structured output.

Two halves of asking a model for JSON: instruction text that embeds the
JSON Schema of a pydantic type, and validation of whatever the model
sent back after ``extract_container`` has recovered it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from jsonsalvage.parsing.recover import extract_container
from jsonsalvage.prompts.template import mustache_environment

if TYPE_CHECKING:
    from collections.abc import Callable

    from jsonsalvage.parsing.recover import JSONContainer

_INSTRUCTIONS = """\
You must format your output as a JSON value that adheres to a given "JSON Schema" instance.

"JSON Schema" is a declarative language that allows you to annotate and validate JSON documents.

For example, the example "JSON Schema" instance {"properties": {"foo": {"description": "a list of test words", "type": "array", "items": {"type": "string"}}}, "required": ["foo"]}
would match an object with one required property, "foo". The "type" property specifies "foo" must be an "array", and the "description" property semantically describes it as "a list of test words". The items within "foo" must be strings.
Thus, the object {"foo": ["bar", "baz"]} is a well-formatted instance of this example "JSON Schema". The object {"properties": {"foo": ["bar", "baz"]}} is not well-formatted.

Your output will be parsed and type-checked according to the provided schema instance, so make sure all fields in your output match the schema exactly and there are no trailing commas!

Here is the JSON Schema instance your output must adhere to. Include the enclosing markdown codeblock:
```json
{{ schema }}
```

The given data is:
```
{{ data }}
```
"""

_template = mustache_environment().from_string(_INSTRUCTIONS)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating recovered model output against a schema."""

    success: bool
    data: Any = None
    error: ValidationError | None = None
    raw: JSONContainer = field(default_factory=dict)

    def errors(self) -> list[dict[str, Any]]:
        """Pydantic error details, empty on success."""
        if self.error is None:
            return []
        return list(self.error.errors())


def json_schema_for(schema: Any) -> dict[str, Any]:
    """JSON Schema for a pydantic model class or any TypeAdapter-able type."""
    return TypeAdapter(schema).json_schema()


def structured_output_instructions(schema: Any) -> Callable[[Any], str]:
    """Build a renderer for prompt instructions describing ``schema``.

    The schema is rendered once; the returned function embeds the given
    data (JSON-serialised) into the instruction text.
    """
    schema_json = json.dumps(json_schema_for(schema))

    def render(data: Any) -> str:
        return _template.render(schema=schema_json, data=json.dumps(data, default=str))

    return render


def validated_output(schema: Any, text: str) -> ValidationResult:
    """Recover JSON from ``text`` and validate it against ``schema``.

    Never raises for malformed text or schema mismatches; inspect
    ``success`` on the result instead.
    """
    raw = extract_container(text)
    try:
        value = TypeAdapter(schema).validate_python(raw)
    except ValidationError as e:
        return ValidationResult(success=False, error=e, raw=raw)
    return ValidationResult(success=True, data=value, raw=raw)
