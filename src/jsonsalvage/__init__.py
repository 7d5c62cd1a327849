"""jsonsalvage - recover JSON containers from noisy model output."""

from jsonsalvage.parsing.recover import extract_container, parse_until_json

__version__ = "0.1.0"

__all__ = ["__version__", "extract_container", "parse_until_json"]
