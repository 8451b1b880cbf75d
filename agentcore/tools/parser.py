"""
Embedded Tool-Call Parser

Grammar (deliberately narrow):

    [[name(key=value,key=value,...)]]

    name       \\w+
    arguments  any text without ')'; split on ',' then on the first '='
               pairs with an empty key or value are skipped

Value coercion:
    true / false            -> bool
    [+-]digits              -> int
    decimal / exponent text -> float
    anything else           -> str, one level of matching quotes removed

There is no escaping: commas, ')' and '=' inside quoted values are not
supported.
"""

from __future__ import annotations

import re
from typing import Any

from agentcore.tools.models import ToolCall, ToolParams

TOOL_CALL_PATTERN = re.compile(r"\[\[(\w+)\(([^)]*)\)\]\]")

_INT_PATTERN = re.compile(r"[+-]?\d+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")
_QUOTES = ("'", '"')


def coerce_value(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_PATTERN.fullmatch(raw):
        return int(raw)
    if _FLOAT_PATTERN.fullmatch(raw):
        return float(raw)
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in _QUOTES:
        return raw[1:-1]
    return raw


def parse_arguments(text: str) -> ToolParams:
    params: ToolParams = {}
    for pair in text.split(","):
        key, sep, value = pair.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key or not value:
            continue
        params[key] = coerce_value(value)
    return params


def parse_tool_calls(text: str) -> list[ToolCall]:
    """All embedded calls in `text`, left to right."""
    return [
        ToolCall(
            name=match.group(1),
            arguments=parse_arguments(match.group(2)),
            start=match.start(),
            end=match.end(),
            raw=match.group(0),
        )
        for match in TOOL_CALL_PATTERN.finditer(text)
    ]
