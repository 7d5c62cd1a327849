"""Recovery of JSON containers from noisy text."""

from jsonsalvage.parsing.recover import (
    JSONContainer,
    extract_container,
    is_container,
    parse_until_json,
)

__all__ = ["JSONContainer", "extract_container", "is_container", "parse_until_json"]
