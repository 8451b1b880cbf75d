"""
Prompt Assembly

Layout, sections separated by blank lines and skipped when empty:

    <system prompt>
    <tool instructions>
    Previous conversation summary: <summary>
    Relevant information from previous conversations:
    <memory per line>
    Current session state:
    <state as JSON>
    User: <input>
    Assistant: <response>        (one block per history turn)
    User: <current input>
    Assistant:

When the estimate exceeds max_prompt_tokens the history is dropped; if the
prompt is still too large the turn fails with CONTEXT_WINDOW_EXCEEDED.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from agentcore.core.config import PromptConfig
from agentcore.core.errors import AgentError
from agentcore.core.types import Err, Ok, Result
from agentcore.memory.budget import estimate_text_tokens
from agentcore.memory.models import MemoryContext
from agentcore.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Already present in the history block
_STATE_KEYS_HIDDEN = frozenset({"last_response"})


class PromptBuilder:
    __slots__ = ("_config", "_tools")

    def __init__(
        self,
        config: Optional[PromptConfig] = None,
        tools: Optional[ToolRegistry] = None,
    ) -> None:
        self._config = config or PromptConfig()
        self._tools = tools

    def build(
        self,
        user_input: str,
        context: MemoryContext,
        state: Mapping[str, Any],
    ) -> Result[str, AgentError]:
        head = [self._config.system_prompt]
        if self._tools is not None:
            head.append(self._tools.describe_tools())
        if context.summary:
            head.append(f"Previous conversation summary: {context.summary}")
        if context.memories:
            head.append(
                "Relevant information from previous conversations:\n" + "\n".join(context.memories)
            )
        if self._config.include_state:
            head.append(self._format_state(state))

        history = [f"User: {turn.input}\nAssistant: {turn.response}" for turn in context.history]
        current = f"User: {user_input}\nAssistant:"

        prompt = _join(*head, *history, current)
        tokens = estimate_text_tokens(prompt)
        if tokens <= self._config.max_prompt_tokens:
            return Ok(prompt)

        reduced = _join(*head, current)
        reduced_tokens = estimate_text_tokens(reduced)
        if reduced_tokens > self._config.max_prompt_tokens:
            return Err(AgentError.context_window_exceeded(
                "Prompt is too large even with reduced context",
                token_count=reduced_tokens,
                max_tokens=self._config.max_prompt_tokens,
            ))

        logger.warning(f"Prompt size reduced from {tokens} tokens: removed conversation history")
        return Ok(reduced)

    @staticmethod
    def _format_state(state: Mapping[str, Any]) -> str:
        visible = {k: v for k, v in state.items() if k not in _STATE_KEYS_HIDDEN}
        if not visible:
            return ""
        return "Current session state:\n" + json.dumps(visible, sort_keys=True, default=str)


def _join(*sections: str) -> str:
    return "\n\n".join(s for s in sections if s)
