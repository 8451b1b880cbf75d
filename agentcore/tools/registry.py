"""
Tool Registry

Explicit, instance-scoped name -> Tool map. Built once at startup (see
agent.factory.build_agent) and passed to the executor.
"""

from __future__ import annotations

from typing import Iterable, Optional

from agentcore.core.types import Err, Ok, Result
from agentcore.tools.models import TOOL_NAME_PATTERN, Tool


class ToolRegistry:
    """
    Usage:
        registry = ToolRegistry()
        registry.register_tool(calculator_tool()).unwrap()
        registry.has_tool("calculator")
    """

    __slots__ = ("_tools",)

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register_tool(self, tool: Tool) -> Result[None, str]:
        if not TOOL_NAME_PATTERN.match(tool.name):
            return Err(f'Tool name "{tool.name}" must contain only letters, digits and underscores')
        if tool.name in self._tools:
            return Err(f'Tool with name "{tool.name}" is already registered')
        self._tools[tool.name] = tool
        return Ok(None)

    def register_tools(self, tools: Iterable[Tool]) -> Result[None, str]:
        """Register in order; stops at the first failure (earlier tools stay registered)."""
        for tool in tools:
            result = self.register_tool(tool)
            if result.is_err():
                return result
        return Ok(None)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get_tool(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def tool_names(self) -> list[str]:
        return sorted(self._tools)

    def tools_by_category(self, category: str) -> list[Tool]:
        return [t for t in self._tools.values() if t.category == category]

    def describe_tools(self) -> str:
        """Prompt block listing the tools and the call syntax."""
        if not self._tools:
            return ""
        lines = [
            "You can use tools by writing [[tool_name(arg1=value1,arg2=value2)]].",
            "Available tools:",
        ]
        lines.extend(self._tools[name].describe() for name in self.tool_names())
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
