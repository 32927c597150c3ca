"""Best-effort detection of JSON inside clipboard text.

Clipboard text often carries JSON that has been serialized once more as a
string, either with its surrounding quotes (``"{\\"a\\":1}"``) or without them
(``[{\\"a\\":1}]``). Detection runs three stages over the stripped text and
stops at the first one that yields an object or array:

1. direct: the text itself parses as a JSON object/array;
2. quoted: the text is a JSON string literal whose value parses;
3. raw-escaped: the text, wrapped in a synthesized quote pair and decoded as a
   JSON string literal, parses.

Stage 3 can flag ordinary text that happens to contain backslash-quote
sequences. That is accepted: this is a heuristic, not a validator.
"""
from __future__ import annotations

import json
from typing import Any

_BRACKETS = (("{", "}"), ("[", "]"))
_MISSING = object()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def _loads(s: str) -> Any:
    return json.loads(s, parse_constant=_reject_constant)


def _parse_container(candidate: str) -> Any:
    s = candidate.strip()
    if not any(s.startswith(o) and s.endswith(c) for o, c in _BRACKETS):
        return _MISSING
    try:
        value = _loads(s)
    except (ValueError, RecursionError):
        return _MISSING
    if not isinstance(value, (dict, list)):
        return _MISSING
    return value


def _decode_string_literal(literal: str) -> str | None:
    try:
        value = _loads(literal)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, str) else None


def _candidates(trimmed: str):
    yield trimmed

    if len(trimmed) >= 2 and trimmed.startswith('"') and trimmed.endswith('"'):
        inner = _decode_string_literal(trimmed)
        if inner is not None:
            yield inner

    inner = _decode_string_literal(f'"{trimmed}"')
    if inner is not None:
        yield inner


def unwrap_json(text: str) -> Any:
    """Return the JSON object/array found in *text*, or ``None``."""
    trimmed = (text or "").strip()
    if not trimmed:
        return None
    for candidate in _candidates(trimmed):
        value = _parse_container(candidate)
        if value is not _MISSING:
            return value
    return None


def looks_like_json(text: str) -> bool:
    return unwrap_json(text) is not None


def format_json(text: str, indent: int = 2) -> str | None:
    """Pretty-print *text* with sorted keys if any detection stage matches."""
    value = unwrap_json(text)
    if value is None:
        return None
    return json.dumps(value, indent=indent, sort_keys=True, ensure_ascii=False)
