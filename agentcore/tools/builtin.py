"""
Built-in Tools

- calculator: add / subtract / multiply / divide on two operands
- weather: mock current-conditions lookup (no network)
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Union

from agentcore.tools.models import Tool, ToolParams

Number = Union[int, float]


def _to_number(value: Any) -> Number:
    if isinstance(value, bool):
        raise ValueError("Invalid operands: a and b must be numbers")
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            raise ValueError("Invalid operands: a and b must be numbers") from None
    if isinstance(number, float) and math.isnan(number):
        raise ValueError("Invalid operands: a and b must be numbers")
    return number


def _tidy(value: Number) -> Number:
    # 6 / 3 reads better as 2 than 2.0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def calculate(params: ToolParams) -> dict[str, Number]:
    operation = params.get("operation")
    if not operation:
        raise ValueError("Operation is required")

    a = _to_number(params.get("a"))
    b = _to_number(params.get("b"))

    if operation == "add":
        result = a + b
    elif operation == "subtract":
        result = a - b
    elif operation == "multiply":
        result = a * b
    elif operation == "divide":
        if b == 0:
            raise ValueError("Division by zero is not allowed")
        result = a / b
    else:
        raise ValueError(f"Unknown operation: {operation}")

    return {"result": _tidy(result)}


def calculator_tool() -> Tool:
    return Tool(
        name="calculator",
        description="Perform mathematical calculations",
        executor=calculate,
        category="utility",
        parameter_schema={
            "operation": "add|subtract|multiply|divide",
            "a": "number",
            "b": "number",
        },
    )


def weather_tool(latency_s: float = 0.0) -> Tool:
    """Mock weather lookup; `latency_s` simulates the API round trip."""

    async def lookup(params: ToolParams) -> dict[str, Any]:
        if latency_s > 0:
            await asyncio.sleep(latency_s)
        return {
            "location": params.get("location") or "Unknown",
            "temperature": 72,
            "conditions": "Sunny",
            "humidity": 45,
            "windSpeed": 5,
        }

    return Tool(
        name="weather",
        description="Get current weather information for a location",
        executor=lookup,
        category="information",
        parameter_schema={"location": "string"},
    )


def default_tools() -> list[Tool]:
    return [calculator_tool(), weather_tool()]
