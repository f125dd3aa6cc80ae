"""Lenient parsing of near-JSON produced by language models."""

import json
import re
from typing import Any

from .models import ParseResult

_UNQUOTED_KEY = re.compile(r"([{,])\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*:")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _fix_near_json(text: str) -> str:
    """Apply the common fixups for model-generated JSON."""
    # {key: 1} -> {"key": 1}
    fixed = _UNQUOTED_KEY.sub(r'\1"\2":', text)
    # Global replacement: breaks strings that contain apostrophes.
    fixed = fixed.replace("'", '"')
    # {"a": 1,} -> {"a": 1}
    return _TRAILING_COMMA.sub(r"\1", fixed)


def try_parse_json(value: Any) -> ParseResult:
    """
    Parse a value that should be JSON, tolerating common model mistakes.

    Non-string values are returned unchanged as a successful parse. Strings
    are tried as strict JSON first, then once more after quoting bare keys,
    swapping single quotes for double quotes and dropping trailing commas.

    Args:
        value: Candidate JSON text or an already-parsed value

    Returns:
        ParseResult with the parsed value, or the original string on failure
        (including input nested too deeply to decode)
    """
    if not isinstance(value, str):
        return ParseResult(parsed=value, success=True)

    try:
        return ParseResult(parsed=json.loads(value), success=True)
    except (ValueError, RecursionError):
        pass

    try:
        return ParseResult(parsed=json.loads(_fix_near_json(value)), success=True)
    except (ValueError, RecursionError):
        return ParseResult(parsed=value, success=False)
