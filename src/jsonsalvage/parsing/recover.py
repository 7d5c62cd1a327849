"""Recover a JSON container from noisy model output.

Model responses that should be JSON often arrive wrapped in a string
literal, fenced in markdown, preceded by prose, or cut off mid-stream.
``extract_container`` runs an ordered list of stages over a working
candidate string and returns the first dict or list any stage produces:

1. Outer quote unwrap (decode the interior of ``"..."``, or the whole
   thing as an escaped JSON string literal)
2. Strict ``json.loads`` of the candidate
3. Cleanup: strip ```` ```json ```` fences, drop prose before the first
   ``{`` or ``[``
4. Strict ``json.loads`` of the cleaned candidate
5. Lenient parse: the leading complete value if there is one, otherwise
   ``json_repair`` (completes truncated input)

Bare primitives are never returned. Every failure is absorbed and the
function falls back to an empty dict, so callers never see an exception.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import json_repair

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

JSONContainer = dict[str, Any] | list[Any]

_FENCE_OPEN = "```json"
_FENCE_CLOSE = "```"


@dataclass(frozen=True, slots=True)
class _Step:
    """Outcome of one stage: either a new candidate or a final value."""

    candidate: str
    done: bool = False
    result: JSONContainer = field(default_factory=dict)


def is_container(value: object) -> bool:
    """True for decoded objects and arrays, false for primitives."""
    return isinstance(value, dict | list)


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity; strict JSON does not.
    msg = f"Non-standard JSON constant: {name}"
    raise ValueError(msg)


def _strict_loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _decode_string_literal(candidate: str) -> JSONContainer | None:
    """Container encoded inside a JSON string literal (``"{\\"a\\": 1}"``)."""
    try:
        inner = _strict_loads(candidate)
        if not isinstance(inner, str):
            return None
        parsed = _strict_loads(inner)
    except (ValueError, RecursionError):
        return None
    return parsed if is_container(parsed) else None


def _unwrap_quotes(candidate: str) -> _Step:
    if not (candidate.startswith('"') and candidate.endswith('"')):
        return _Step(candidate)

    interior = candidate[1:-1]
    try:
        parsed = _strict_loads(interior)
    except (ValueError, RecursionError):
        decoded = _decode_string_literal(candidate)
        if decoded is not None:
            logger.info("Parsed successfully after decoding escaped string literal")
            return _Step(interior, done=True, result=decoded)
        logger.info("Failed to parse content within outer quotes, proceeding to cleanup")
        return _Step(interior)

    if is_container(parsed):
        logger.info("Parsed successfully after removing outer quotes")
        return _Step(interior, done=True, result=parsed)

    logger.warning(
        "Parsed after removing outer quotes, but result is not a container: %r",
        parsed,
    )
    return _Step(interior)


def _strict_parse(candidate: str) -> _Step:
    try:
        parsed = _strict_loads(candidate)
    except (ValueError, RecursionError):
        logger.info("Standard JSON parse failed, proceeding to cleanup")
        return _Step(candidate)

    if is_container(parsed):
        logger.info("Parsed successfully using standard JSON parse")
        return _Step(candidate, done=True, result=parsed)

    logger.warning("Standard JSON parse succeeded, but result is not a container: %r", parsed)
    return _Step(candidate)


def _find_json_start(text: str) -> int | None:
    """Index of the earliest ``{`` or ``[``, whichever comes first."""
    indices = [i for i in (text.find("{"), text.find("[")) if i != -1]
    return min(indices) if indices else None


def _cleanup(candidate: str) -> _Step:
    text = candidate
    if text.startswith(_FENCE_OPEN):
        text = text[len(_FENCE_OPEN) :]
    if text.endswith(_FENCE_CLOSE):
        text = text[: -len(_FENCE_CLOSE)]
    text = text.strip()

    start = _find_json_start(text)
    if start is None:
        logger.error("No JSON object or array start found in the string after cleanup")
        return _Step(text, done=True)

    if start > 0:
        logger.info("Trimming %d characters before first '{' or '['", start)
        text = text[start:]
    return _Step(text)


def _leading_value(candidate: str) -> Any:
    """First complete JSON value in ``candidate``, ignoring anything after it."""
    try:
        value, _ = _DECODER.raw_decode(candidate)
    except (ValueError, RecursionError):
        return None
    return value


def _lenient_parse(candidate: str) -> _Step:
    leading = _leading_value(candidate)
    if is_container(leading):
        logger.info("Parsed leading JSON value, ignoring trailing text")
        return _Step(candidate, done=True, result=leading)

    try:
        parsed = json_repair.loads(candidate)
    except Exception as exc:  # noqa: BLE001
        logger.error("Error parsing the JSON even with the lenient parser: %s", exc)
        logger.info("Final string attempted by lenient parser: %s", candidate)
        return _Step(candidate, done=True)

    # json_repair collects several top-level values into a list; an object
    # candidate can only come back as a list that way.
    if candidate.startswith("{") and isinstance(parsed, list) and parsed:
        parsed = parsed[0]

    if is_container(parsed):
        logger.info("Parsed successfully using the lenient parser")
        return _Step(candidate, done=True, result=parsed)

    logger.error("Lenient parser did not return a container: %r", parsed)
    logger.info("Final string attempted by lenient parser: %s", candidate)
    return _Step(candidate, done=True)


_STAGES: tuple[Callable[[str], _Step], ...] = (
    _unwrap_quotes,
    _strict_parse,
    _cleanup,
    _strict_parse,
    _lenient_parse,
)


def extract_container(text: str) -> JSONContainer:
    """Recover a JSON object or array from text.

    Args:
        text: Raw model output that should contain JSON.

    Returns:
        The first dict or list recovered by the stage pipeline, or an
        empty dict when nothing container-shaped can be found. Never
        raises.
    """
    candidate = text.strip()
    for stage in _STAGES:
        step = stage(candidate)
        if step.done:
            return step.result
        candidate = step.candidate

    logger.error("Parsing failed through all stages unexpectedly")
    return {}


# Alias under the helper's historical name.
parse_until_json = extract_container
