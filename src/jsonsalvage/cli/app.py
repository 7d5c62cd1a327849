"""Main CLI application.

Click commands for jsonsalvage: extract, validate, schema-prompt,
render, ask.
"""

from __future__ import annotations

import asyncio
import importlib
import json as json_mod
import sys
from typing import TYPE_CHECKING, Any

import click
from pydantic_core import to_jsonable_python

from jsonsalvage import __version__
from jsonsalvage.config.loader import load_config
from jsonsalvage.core.errors import ConfigError, ProviderAuthError, SalvageError
from jsonsalvage.logging_setup import configure_logging
from jsonsalvage.parsing.recover import extract_container

if TYPE_CHECKING:
    from jsonsalvage.config.schema import SalvageConfig
    from jsonsalvage.prompts.structured import ValidationResult


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> SalvageConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def _import_schema(ref: str) -> Any:
    """Resolve ``package.module:Name`` to the named object."""
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        msg = f"Schema must be given as 'module:Name', got {ref!r}"
        raise click.BadParameter(msg, param_hint="SCHEMA")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"Cannot import module {module_name!r}: {e}"
        raise click.BadParameter(msg, param_hint="SCHEMA") from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        msg = f"Module {module_name!r} has no attribute {attr!r}"
        raise click.BadParameter(msg, param_hint="SCHEMA") from e


def _parse_vars(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn ``name=value`` options into a dict."""
    params: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            msg = f"Expected name=value, got {pair!r}"
            raise click.BadParameter(msg, param_hint="--var")
        params[name] = value
    return params


def _dump(value: Any, indent: int) -> str:
    return json_mod.dumps(value, indent=indent or None, ensure_ascii=False, default=str)


def _echo_validation(result: ValidationResult, indent: int) -> None:
    """Print validated data, or the errors and exit 1."""
    if result.success:
        click.echo(_dump(to_jsonable_python(result.data), indent))
        return
    for err in result.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        click.echo(f"{loc}: {err.get('msg', '')}", err=True)
    sys.exit(1)


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="jsonsalvage")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every recovery stage.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """jsonsalvage - Recover JSON from noisy model output.

    Strips quotes, markdown fences and prose, and completes truncated JSON.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return
    config = _load_config(config_path)
    ctx.obj["config"] = config
    try:
        configure_logging(config.logging, verbose=verbose)
    except ConfigError as e:
        _error(str(e))


# ── extract ──────────────────────────────────────────────────────


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent.")
def extract(source: Any, indent: int) -> None:
    """Recover a JSON object or array from SOURCE (default: stdin)."""
    click.echo(_dump(extract_container(source.read()), indent))


# ── validate ─────────────────────────────────────────────────────


@cli.command()
@click.argument("schema")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent.")
def validate(schema: str, source: Any, indent: int) -> None:
    """Recover JSON from SOURCE and validate it against SCHEMA.

    SCHEMA is a pydantic model given as ``module:ClassName``.
    """
    from jsonsalvage.prompts.structured import validated_output

    schema_type = _import_schema(schema)
    _echo_validation(validated_output(schema_type, source.read()), indent)


# ── schema-prompt ────────────────────────────────────────────────


@cli.command("schema-prompt")
@click.argument("schema")
@click.argument("source", type=click.File("r"), required=False)
def schema_prompt(schema: str, source: Any) -> None:
    """Print format instructions for SCHEMA.

    JSON data read from SOURCE, if given, is embedded in the text.
    """
    from jsonsalvage.prompts.structured import structured_output_instructions

    schema_type = _import_schema(schema)
    data = None
    if source is not None:
        try:
            data = json_mod.loads(source.read())
        except json_mod.JSONDecodeError as e:
            _error(f"{source.name} is not valid JSON: {e}")
    click.echo(structured_output_instructions(schema_type)(data))


# ── render ───────────────────────────────────────────────────────


@cli.command()
@click.argument("template", type=click.File("r"))
@click.option("--var", "-V", "variables", multiple=True, help="name=value (repeatable).")
def render(template: Any, variables: tuple[str, ...]) -> None:
    """Render a mustache-style TEMPLATE file."""
    from jsonsalvage.prompts.template import ChatPromptTemplate

    prompt = ChatPromptTemplate.from_template(template.read())
    try:
        click.echo(prompt.format(_parse_vars(variables)))
    except SalvageError as e:
        _error(str(e))


# ── ask ──────────────────────────────────────────────────────────


@cli.command()
@click.argument("template", type=click.File("r"))
@click.option("--var", "-V", "variables", multiple=True, help="name=value (repeatable).")
@click.option("--model", default=None, help="Model id (default from config).")
@click.option("--schema", default=None, help="Validate the reply against module:Name.")
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent.")
@click.pass_context
def ask(
    ctx: click.Context,
    template: Any,
    variables: tuple[str, ...],
    model: str | None,
    schema: str | None,
    indent: int,
) -> None:
    """Render TEMPLATE, send it to the configured provider, print the JSON reply."""
    from jsonsalvage.prompts.structured import (
        structured_output_instructions,
        validated_output,
    )
    from jsonsalvage.prompts.template import ChatPromptTemplate
    from jsonsalvage.providers.openai import OpenAIProvider

    config: SalvageConfig = ctx.obj["config"]
    params = _parse_vars(variables)
    schema_type = _import_schema(schema) if schema else None

    try:
        provider = OpenAIProvider(
            api_key=config.provider.api_key, base_url=config.provider.base_url
        )
    except ProviderAuthError as e:
        env = config.provider.api_key_env
        _error(f"{e}; set ${env} or [provider] api_key in the config file")
        return

    prompt = ChatPromptTemplate.from_template(template.read()).pipe(provider)
    if schema_type is not None:
        instructions = structured_output_instructions(schema_type)
        prompt.pipe(lambda text: f"{text}\n\n{instructions(params)}")

    try:
        response = asyncio.run(
            prompt.invoke(
                model or config.provider.default_model,
                params,
                max_tokens=config.provider.max_tokens,
                temperature=config.provider.temperature,
            )
        )
    except SalvageError as e:
        _error(str(e))
        return

    if schema_type is not None:
        _echo_validation(validated_output(schema_type, response.content), indent)
    else:
        click.echo(_dump(extract_container(response.content), indent))
