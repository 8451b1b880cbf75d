"""
Agent Orchestrator: One User Utterance In, One Reply Out

Pipeline for handle_request(input, session_id):
    1. validate input and session id
    2. read session state
    3. fetch memory context and fit it to the context budget
    4. assemble the prompt
    5. call the generation backend through the circuit breaker
    6. resolve embedded tool calls
    7. write last_response to state and store the interaction
    8. notify the governance observer

Stages return Result values; the first Err short-circuits the pipeline and
is converted exactly once, here, into a MonitoredError whose user-facing
message becomes the reply. handle_request never raises.
"""

from __future__ import annotations

import inspect
from contextlib import AsyncExitStack
from typing import Any, Optional

from agentcore.agent.backend import GenerationBackend
from agentcore.agent.governance import DecisionObserver, DecisionRecord
from agentcore.agent.prompt import PromptBuilder
from agentcore.core.config import AgentConfig
from agentcore.core.errors import AgentError
from agentcore.core.types import Err, Ok, Result, SessionId, validate_session_id
from agentcore.memory.budget import estimate_text_tokens
from agentcore.memory.manager import HybridMemoryManager
from agentcore.memory.models import Interaction
from agentcore.observability.logging import StructuredLogger
from agentcore.observability.telemetry import PerformanceMonitor, RequestMetrics
from agentcore.reliability.circuit_breaker import CircuitBreaker
from agentcore.reliability.error_handler import ErrorHandler
from agentcore.session.locks import SessionLockTable
from agentcore.session.state_store import SessionStateStore
from agentcore.tools.executor import ToolExecutor
from agentcore.tools.parser import parse_tool_calls

LLM_OPERATION = "llm_completion"


class AgentOrchestrator:
    """
    The only caller-facing component.

    Built by agent.factory.build_agent; every collaborator is injected so
    tests can substitute any of them.
    """

    __slots__ = (
        "_config", "_state", "_memory", "_prompts", "_backend", "_breaker",
        "_tools", "_errors", "_monitor", "_locks", "_observer", "_log",
    )

    def __init__(
        self,
        config: AgentConfig,
        state_store: SessionStateStore,
        memory: HybridMemoryManager,
        prompt_builder: PromptBuilder,
        backend: GenerationBackend,
        breaker: CircuitBreaker,
        tool_executor: ToolExecutor,
        error_handler: ErrorHandler,
        monitor: PerformanceMonitor,
        locks: Optional[SessionLockTable] = None,
        observer: Optional[DecisionObserver] = None,
    ) -> None:
        self._config = config
        self._state = state_store
        self._memory = memory
        self._prompts = prompt_builder
        self._backend = backend
        self._breaker = breaker
        self._tools = tool_executor
        self._errors = error_handler
        self._monitor = monitor
        self._locks = locks
        self._observer = observer
        self._log = StructuredLogger(__name__)

    # -------------------------------------------------------------------------
    # PUBLIC API
    # -------------------------------------------------------------------------

    async def handle_request(self, user_input: Any, session_id: Any) -> str:
        """Reply text for one utterance, or a safe error message. Never raises."""
        metrics = self._monitor.start_request(str(session_id))

        with self._log.context(request_id=metrics.request_id, session_id=str(session_id)):
            try:
                result = await self._run(user_input, session_id, metrics)
            except Exception as e:
                result = Err(AgentError.from_exception(e))

            if result.is_ok():
                reply = result.unwrap()
                self._monitor.end_request(metrics, response=reply)
                return reply

            monitored = self._errors.handle(
                result.error,
                {"session_id": str(session_id), "request_id": metrics.request_id},
            )
            self._monitor.end_request(
                metrics,
                response=monitored.user_facing_message,
                error_category=monitored.category,
            )
            return monitored.user_facing_message

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def memory(self) -> HybridMemoryManager:
        return self._memory

    @property
    def state_store(self) -> SessionStateStore:
        return self._state

    @property
    def monitor(self) -> PerformanceMonitor:
        return self._monitor

    # -------------------------------------------------------------------------
    # PIPELINE
    # -------------------------------------------------------------------------

    async def _run(
        self,
        user_input: Any,
        session_id: Any,
        metrics: RequestMetrics,
    ) -> Result[str, AgentError]:
        if not isinstance(user_input, str) or not user_input.strip():
            return Err(AgentError.input_validation("Input is empty."))

        checked = validate_session_id(session_id)
        if checked.is_err():
            return Err(AgentError.input_validation(checked.error, field_name="session_id"))
        sid = checked.unwrap()

        async with AsyncExitStack() as stack:
            if self._locks is not None:
                await stack.enter_async_context(self._locks.hold(sid))
            return await self._pipeline(user_input.strip(), sid, metrics)

    async def _pipeline(
        self,
        text: str,
        sid: SessionId,
        metrics: RequestMetrics,
    ) -> Result[str, AgentError]:
        state = await self._state.get(sid)
        if state.is_err():
            return state

        context = await self._memory.get_context(sid, text)
        if context.is_err():
            return context

        fitted = self._memory.optimize_context(context.unwrap(), self._config.max_context_tokens)
        if fitted.is_err():
            return fitted

        prompt = self._prompts.build(text, fitted.unwrap(), state.unwrap())
        if prompt.is_err():
            return prompt
        prompt_text = prompt.unwrap()

        raw = await self._breaker.call(lambda: self._complete(prompt_text))
        if raw.is_err():
            return raw
        raw_text = raw.unwrap()

        reply = await self._tools.process_response(raw_text, sid)

        updated = await self._state.update(sid, {"last_response": reply})
        if updated.is_err():
            return updated

        stored = await self._memory.store_interaction(sid, Interaction(input=text, response=reply))
        if stored.is_err():
            return stored

        self._log.info(
            "Request completed",
            prompt_tokens=estimate_text_tokens(prompt_text),
            reply_chars=len(reply),
        )
        await self._notify_observer(DecisionRecord(
            request_id=metrics.request_id,
            session_id=sid,
            input=text,
            output=reply,
            prompt_tokens=estimate_text_tokens(prompt_text),
            tools_invoked=tuple(call.name for call in parse_tool_calls(raw_text)),
        ))
        return Ok(reply)

    async def _complete(self, prompt: str) -> str:
        reply = await self._backend.complete(prompt)
        if not isinstance(reply, str):
            raise AgentError.llm_api(f"backend returned {type(reply).__name__}, expected text")
        return reply

    async def _notify_observer(self, record: DecisionRecord) -> None:
        if self._observer is None:
            return
        try:
            outcome = self._observer.observe(self._config.model_id, record)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self._log.warning(f"Decision observer failed: {e}", observer=type(self._observer).__name__)
