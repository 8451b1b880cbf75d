"""
Tools module: registry, embedded-call parser, executor and built-in tools.
"""

from agentcore.tools.models import Tool, ToolCall, ToolResult
from agentcore.tools.registry import ToolRegistry
from agentcore.tools.parser import coerce_value, parse_arguments, parse_tool_calls
from agentcore.tools.executor import ToolExecutor, format_tool_output
from agentcore.tools.builtin import calculator_tool, default_tools, weather_tool

__all__ = [
    "Tool",
    "ToolCall",
    "ToolResult",
    "ToolRegistry",
    "coerce_value",
    "parse_arguments",
    "parse_tool_calls",
    "ToolExecutor",
    "format_tool_output",
    "calculator_tool",
    "default_tools",
    "weather_tool",
]
