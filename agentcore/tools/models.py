"""
Tool Data Model

A Tool is a named callable the generation backend can request with an
embedded call marker. Executors receive the parsed argument map and may be
plain functions or coroutines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

ToolParams = dict[str, Any]
ToolExecutorFn = Callable[[ToolParams], Union[Any, Awaitable[Any]]]

TOOL_NAME_PATTERN = re.compile(r"^\w+$")


@dataclass(frozen=True, slots=True)
class Tool:
    """
    Registered tool.

    Attributes:
        name: Unique identifier, word characters only (the call syntax is `\\w+`)
        description: One line shown to the model
        executor: Called with the argument map
        category: Optional grouping ("utility", "information", ...)
        parameter_schema: Descriptive only; arguments are not validated against it
    """
    name: str
    description: str
    executor: ToolExecutorFn
    category: Optional[str] = None
    parameter_schema: Optional[Mapping[str, Any]] = None

    def describe(self) -> str:
        line = f"- {self.name}: {self.description}"
        if self.parameter_schema:
            params = ", ".join(f"{k}={v}" for k, v in self.parameter_schema.items())
            line += f" (parameters: {params})"
        return line


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of one tool execution; `data` on success, `error` otherwise."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any) -> ToolResult:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, message: str, **details: Any) -> ToolResult:
        return cls(success=False, error=message, details=details)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """One embedded call found in backend output; `start`/`end` index the raw span."""
    name: str
    arguments: ToolParams
    start: int
    end: int
    raw: str
