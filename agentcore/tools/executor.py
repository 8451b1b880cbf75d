"""
Tool Executor: Runs Registered Tools and Splices Results into Responses

Provides:
- execute_tool: run one tool, never raises, failures become ToolResult errors
- process_response: resolve every embedded call in backend output

Failures go through the ErrorHandler so the text substituted into the
response carries only the user-facing message.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Mapping, Optional

from agentcore.core.config import ToolConfig
from agentcore.core.errors import AgentError
from agentcore.reliability.error_handler import ErrorHandler
from agentcore.tools.models import ToolCall, ToolResult
from agentcore.tools.parser import parse_tool_calls
from agentcore.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def format_tool_output(data: Any) -> str:
    """Dicts and lists as JSON, everything else with str()."""
    if isinstance(data, (dict, list, tuple)):
        return json.dumps(data, default=str)
    return str(data)


class ToolExecutor:
    """
    Usage:
        executor = ToolExecutor(registry, ErrorHandler())
        text = await executor.process_response("Result: [[calculator(operation=add,a=2,b=3)]]", "s1")
        # 'Result: {"result": 5}'
    """

    __slots__ = ("_registry", "_error_handler", "_timeout_s")

    def __init__(
        self,
        registry: ToolRegistry,
        error_handler: ErrorHandler,
        config: Optional[ToolConfig] = None,
    ) -> None:
        self._registry = registry
        self._error_handler = error_handler
        self._timeout_s = (config or ToolConfig()).timeout_s

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def has_tool(self, name: str) -> bool:
        return self._registry.has_tool(name)

    async def execute_tool(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> ToolResult:
        tool = self._registry.get_tool(name)
        if tool is None:
            return ToolResult.failure(f'Tool "{name}" not found')

        arguments = dict(params or {})
        try:
            outcome = tool.executor(arguments)
            if inspect.isawaitable(outcome):
                outcome = await asyncio.wait_for(outcome, timeout=self._timeout_s)
        except asyncio.TimeoutError as e:
            error = AgentError.tool_execution(name, f"timed out after {self._timeout_s}s", cause=e)
        except Exception as e:
            error = AgentError.tool_execution(name, str(e) or type(e).__name__, cause=e)
        else:
            logger.debug(f"Tool {name} succeeded")
            return ToolResult.ok(outcome)

        monitored = self._error_handler.handle(
            error,
            {"tool_name": name, "params": arguments, "session_id": session_id},
        )
        return ToolResult.failure(
            monitored.user_facing_message,
            error_id=monitored.error_id,
            internal_details=monitored.internal_details,
        )

    async def process_response(self, raw_text: str, session_id: Optional[str] = None) -> str:
        """
        Replace every embedded call with its result.

        Calls are resolved one after another, left to right, and each exact
        matched span is replaced; text between calls is kept verbatim.
        """
        calls = parse_tool_calls(raw_text)
        if not calls:
            return raw_text

        pieces: list[str] = []
        cursor = 0
        for call in calls:
            pieces.append(raw_text[cursor:call.start])
            pieces.append(await self._resolve(call, session_id))
            cursor = call.end
        pieces.append(raw_text[cursor:])
        return "".join(pieces)

    async def _resolve(self, call: ToolCall, session_id: Optional[str]) -> str:
        if not self._registry.has_tool(call.name):
            available = ", ".join(self._registry.tool_names()) or "none"
            logger.info(f"Backend requested unknown tool {call.name}")
            return f'Tool "{call.name}" not found. Available tools: {available}'

        result = await self.execute_tool(call.name, call.arguments, session_id)
        if result.success:
            return format_tool_output(result.data)
        return f"Error executing tool {call.name}: {result.error}"
