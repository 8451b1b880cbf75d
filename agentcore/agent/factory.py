"""
Agent Construction

Wires every component from one AgentConfig. All registries (tools, circuit
breakers, metrics) are created here and passed down explicitly.

Usage:
    config = AgentConfig.from_env().unwrap()
    configure_logging(config.observability)

    async with running_agent(config, backend=my_backend) as agent:
        reply = await agent.handle_request("Hello", "session-1")
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from agentcore.agent.backend import EchoBackend, GenerationBackend
from agentcore.agent.governance import DecisionObserver
from agentcore.agent.orchestrator import LLM_OPERATION, AgentOrchestrator
from agentcore.agent.prompt import PromptBuilder
from agentcore.core.config import AgentConfig, ObservabilityConfig, StorageConfig
from agentcore.core.errors import AgentError
from agentcore.memory.manager import HybridMemoryManager
from agentcore.memory.summarizer import Summarizer
from agentcore.observability.logging import LogLevel, setup_logging
from agentcore.observability.metrics import MetricsCollector
from agentcore.observability.telemetry import PerformanceMonitor
from agentcore.reliability.circuit_breaker import CircuitBreakerRegistry
from agentcore.reliability.error_handler import ErrorHandler, ErrorReporter
from agentcore.session.locks import SessionLockTable
from agentcore.session.state_store import SessionStateStore
from agentcore.storage.config import BackendType
from agentcore.storage.memory_store import InMemoryKeyValueStore
from agentcore.storage.protocols import KeyValueStore
from agentcore.storage.redis_store import RedisKeyValueStore
from agentcore.tools.builtin import default_tools
from agentcore.tools.executor import ToolExecutor
from agentcore.tools.models import Tool
from agentcore.tools.registry import ToolRegistry


def configure_logging(config: ObservabilityConfig) -> None:
    setup_logging(level=LogLevel.parse(config.log_level), json_output=config.log_json)


def build_store(config: StorageConfig) -> KeyValueStore:
    """Store selected by configuration; a Redis store still needs connect()."""
    if config.backend == BackendType.REDIS:
        return RedisKeyValueStore(config.redis)
    return InMemoryKeyValueStore()


def build_agent(
    config: Optional[AgentConfig] = None,
    *,
    backend: Optional[GenerationBackend] = None,
    store: Optional[KeyValueStore] = None,
    tools: Optional[Iterable[Tool]] = None,
    observer: Optional[DecisionObserver] = None,
    reporter: Optional[ErrorReporter] = None,
    summarizer: Optional[Summarizer] = None,
    collector: Optional[MetricsCollector] = None,
    breakers: Optional[CircuitBreakerRegistry] = None,
) -> AgentOrchestrator:
    """
    Assemble an orchestrator.

    Defaults: EchoBackend, in-memory store (or Redis per config), the
    built-in calculator and weather tools, extractive summaries.

    Raises:
        ValueError: invalid configuration or duplicate tool names
    """
    config = config or AgentConfig()
    validated = config.validate()
    if validated.is_err():
        raise ValueError(f"Invalid agent configuration: {validated.error}")

    if store is None:
        store = build_store(config.storage)
    error_handler = ErrorHandler(reporter=reporter)

    registry = ToolRegistry()
    registered = registry.register_tools(default_tools() if tools is None else tools)
    if registered.is_err():
        raise ValueError(registered.error)

    if breakers is None:
        breakers = CircuitBreakerRegistry(config.circuit_breaker)

    return AgentOrchestrator(
        config=config,
        state_store=SessionStateStore(store),
        memory=HybridMemoryManager(store, config.memory, summarizer),
        prompt_builder=PromptBuilder(config.prompt, registry),
        backend=backend or EchoBackend(),
        breaker=breakers.get(LLM_OPERATION),
        tool_executor=ToolExecutor(registry, error_handler, config.tools),
        error_handler=error_handler,
        monitor=PerformanceMonitor(
            collector or MetricsCollector(),
            slow_request_ms=config.observability.slow_request_ms,
        ),
        locks=SessionLockTable() if config.serialize_sessions else None,
        observer=observer,
    )


@asynccontextmanager
async def running_agent(
    config: Optional[AgentConfig] = None,
    *,
    store: Optional[KeyValueStore] = None,
    monitor_breaker: bool = True,
    **kwargs,
) -> AsyncIterator[AgentOrchestrator]:
    """
    Build an agent, connect its store if needed, and run the breaker monitor.

    Raises:
        AgentError: MEMORY_STORAGE when the Redis store cannot connect
    """
    config = config or AgentConfig()
    if store is None:
        store = build_store(config.storage)

    if isinstance(store, RedisKeyValueStore) and not store.connected:
        connected = await store.connect()
        if connected.is_err():
            raise AgentError.memory_storage("connect storage", connected.error)

    agent = build_agent(config, store=store, **kwargs)
    if monitor_breaker:
        agent.breaker.start_monitor()
    try:
        yield agent
    finally:
        await agent.breaker.stop_monitor()
        if isinstance(store, RedisKeyValueStore):
            await store.close()
