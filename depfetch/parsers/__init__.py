"""Manifest parsing strategies — registered on import, in precedence order."""

from depfetch.parsers import (
    embedded_object,  # noqa: F401
    structured_json,  # noqa: F401
    structured_yaml,  # noqa: F401
    textual_regex,  # noqa: F401
)
from depfetch.parsers.registry import (
    STRATEGY_REGISTRY,
    ParseStrategy,
    parse_manifest,
    parse_text,
)

__all__ = ["STRATEGY_REGISTRY", "ParseStrategy", "parse_manifest", "parse_text"]
