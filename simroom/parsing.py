"""Recovering JSON objects from free-form LLM output.

Models that cannot be forced into JSON mode wrap their answer in prose or a
markdown fence. parse_json_object() tries an ordered list of strategies:

  1. direct  : the whole text is JSON
  2. fenced  : the body of the first ```json ... ``` (or bare ```) block
  3. braces  : the span from the first "{" to the last "}"

Each strategy returns the decoded object or raises ParseError; the first
success wins.
"""

import json
import re
from collections.abc import Callable
from typing import Any

from simroom.errors import ParseError

_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.IGNORECASE | re.DOTALL)
_PARTIAL_ANALYSIS = re.compile(r'"analysis"\s*:\s*"((?:[^"\\]|\\.)*)', re.DOTALL)


def _decode_object(text: str) -> dict[str, Any]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e}") from e
    if not isinstance(value, dict):
        raise ParseError(f"expected a JSON object, got {type(value).__name__}")
    return value


def parse_direct(text: str) -> dict[str, Any]:
    return _decode_object(text.strip())


def parse_fenced(text: str) -> dict[str, Any]:
    match = _FENCE.search(text)
    if match is None:
        raise ParseError("no fenced code block")
    return _decode_object(match.group(1))


def parse_brace_span(text: str) -> dict[str, Any]:
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ParseError("no {...} span")
    return _decode_object(text[start:end + 1])


STRATEGIES: tuple[Callable[[str], dict[str, Any]], ...] = (
    parse_direct,
    parse_fenced,
    parse_brace_span,
)


def parse_json_object(text: str) -> dict[str, Any]:
    """Decode the first strategy that yields a JSON object."""
    if not text.strip():
        raise ParseError("empty response")
    errors: list[str] = []
    for strategy in STRATEGIES:
        try:
            return strategy(text)
        except ParseError as e:
            errors.append(f"{strategy.__name__}: {e}")
    raise ParseError("LLM output is not valid JSON (" + "; ".join(errors) + ")")


def partial_analysis(raw: str) -> str | None:
    """Extract the (possibly unterminated) "analysis" string from streamed JSON.

    Used while a mood evaluation is still streaming, so the text can be shown
    before the object is complete. Returns None until the field has started.
    """
    match = _PARTIAL_ANALYSIS.search(raw)
    if match is None:
        return None
    body = match.group(1)
    # A chunk boundary can split an escape sequence; drop the dangling part.
    body = re.sub(r"\\(u[0-9a-fA-F]{0,3})?$", "", body)
    try:
        return json.loads(f'"{body}"')
    except json.JSONDecodeError:
        return body.replace('\\"', '"').replace("\\n", "\n")
