"""
Configuration Management for the Agent Engine

Provides validated configuration with sensible defaults.
Supports environment variable overrides.

Design:
- Immutable after validation
- Fail-fast on invalid configuration
- Type-safe with dataclasses
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from agentcore.core import constants as C
from agentcore.core.types import Err, Ok, Result
from agentcore.storage.config import BackendType, RedisConfig


@dataclass(frozen=True)
class MemoryConfig:
    """Short-term / long-term memory sizing."""

    max_short_term_turns: int = C.MAX_SHORT_TERM_TURNS
    max_long_term_memories: int = C.MAX_LONG_TERM_MEMORIES
    max_relevant_memories: int = C.MAX_RELEVANT_MEMORIES
    enable_summarization: bool = True
    summarize_after_turns: int = C.SUMMARIZE_AFTER_TURNS

    def __post_init__(self) -> None:
        """
        Validate sizing invariants.

        Raises:
            ValueError: If any limit is out of range.
        """
        if self.max_short_term_turns < 1:
            raise ValueError(f"max_short_term_turns must be >= 1, got {self.max_short_term_turns}")
        if self.max_long_term_memories < 2:
            raise ValueError(f"max_long_term_memories must be >= 2, got {self.max_long_term_memories}")
        if self.max_relevant_memories < 0:
            raise ValueError(f"max_relevant_memories must be >= 0, got {self.max_relevant_memories}")
        if self.summarize_after_turns < 1:
            raise ValueError(f"summarize_after_turns must be >= 1, got {self.summarize_after_turns}")


@dataclass(frozen=True)
class PromptConfig:
    """Prompt assembly settings."""

    system_prompt: str = C.DEFAULT_SYSTEM_PROMPT
    max_prompt_tokens: int = C.MAX_PROMPT_TOKENS
    include_state: bool = True


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Thresholds for breakers guarding external operations."""

    failure_threshold: int = C.CIRCUIT_FAILURE_THRESHOLD
    reset_timeout_s: float = C.CIRCUIT_RESET_TIMEOUT_S
    monitor_interval_s: float = C.CIRCUIT_MONITOR_INTERVAL_S


@dataclass(frozen=True)
class ToolConfig:
    """Tool execution limits."""

    timeout_s: Optional[float] = C.TOOL_TIMEOUT_S


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging and telemetry configuration."""

    log_level: str = "INFO"
    log_json: bool = True
    slow_request_ms: float = C.SLOW_REQUEST_MS


@dataclass(frozen=True)
class StorageConfig:
    """Which key/value backend holds state and memory."""

    backend: BackendType = BackendType.IN_MEMORY
    redis: RedisConfig = field(default_factory=RedisConfig)


@dataclass(frozen=True)
class AgentConfig:
    """Root configuration for the agent engine."""

    model_id: str = "default"
    max_context_tokens: int = C.MAX_CONTEXT_TOKENS
    serialize_sessions: bool = True
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    prompt: PromptConfig = field(default_factory=PromptConfig)
    circuit_breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    tools: ToolConfig = field(default_factory=ToolConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls) -> Result[AgentConfig, str]:
        """
        Load configuration from environment variables.

        Environment variables are prefixed with AGENTCORE_.
        Example: AGENTCORE_MAX_SHORT_TERM_TURNS, AGENTCORE_STORAGE_BACKEND
        """
        def _get(key: str, default: str) -> str:
            return os.getenv(f"AGENTCORE_{key}", default)

        def _get_bool(key: str, default: bool) -> bool:
            return _get(key, str(default)).lower() in ("true", "1", "yes")

        try:
            memory = MemoryConfig(
                max_short_term_turns=int(_get("MAX_SHORT_TERM_TURNS", str(C.MAX_SHORT_TERM_TURNS))),
                max_long_term_memories=int(_get("MAX_LONG_TERM_MEMORIES", str(C.MAX_LONG_TERM_MEMORIES))),
                max_relevant_memories=int(_get("MAX_RELEVANT_MEMORIES", str(C.MAX_RELEVANT_MEMORIES))),
                enable_summarization=_get_bool("ENABLE_SUMMARIZATION", True),
                summarize_after_turns=int(_get("SUMMARIZE_AFTER_TURNS", str(C.SUMMARIZE_AFTER_TURNS))),
            )

            prompt = PromptConfig(
                system_prompt=_get("SYSTEM_PROMPT", C.DEFAULT_SYSTEM_PROMPT),
                max_prompt_tokens=int(_get("MAX_PROMPT_TOKENS", str(C.MAX_PROMPT_TOKENS))),
            )

            breaker = CircuitBreakerConfig(
                failure_threshold=int(_get("CIRCUIT_FAILURE_THRESHOLD", str(C.CIRCUIT_FAILURE_THRESHOLD))),
                reset_timeout_s=float(_get("CIRCUIT_RESET_TIMEOUT_S", str(C.CIRCUIT_RESET_TIMEOUT_S))),
                monitor_interval_s=float(_get("CIRCUIT_MONITOR_INTERVAL_S", str(C.CIRCUIT_MONITOR_INTERVAL_S))),
            )

            observability = ObservabilityConfig(
                log_level=_get("LOG_LEVEL", "INFO").upper(),
                log_json=_get_bool("LOG_JSON", True),
                slow_request_ms=float(_get("SLOW_REQUEST_MS", str(C.SLOW_REQUEST_MS))),
            )

            storage = StorageConfig(
                backend=BackendType.parse(_get("STORAGE_BACKEND", "memory")),
                redis=RedisConfig.from_env(),
            )

            config = cls(
                model_id=_get("MODEL_ID", "default"),
                max_context_tokens=int(_get("MAX_CONTEXT_TOKENS", str(C.MAX_CONTEXT_TOKENS))),
                serialize_sessions=_get_bool("SERIALIZE_SESSIONS", True),
                memory=memory,
                prompt=prompt,
                circuit_breaker=breaker,
                tools=ToolConfig(timeout_s=float(_get("TOOL_TIMEOUT_S", str(C.TOOL_TIMEOUT_S)))),
                observability=observability,
                storage=storage,
            )
        except (ValueError, TypeError) as e:
            return Err(f"Configuration error: {e}")

        return config.validate().map(lambda _: config)

    def validate(self) -> Result[None, str]:
        """Validate cross-section invariants; MemoryConfig checks itself on construction."""
        if self.max_context_tokens < 1:
            return Err("max_context_tokens must be >= 1")
        if self.prompt.max_prompt_tokens < 1:
            return Err("max_prompt_tokens must be >= 1")
        if self.circuit_breaker.failure_threshold < 1:
            return Err("failure_threshold must be >= 1")
        if self.circuit_breaker.reset_timeout_s < 0:
            return Err("reset_timeout_s must be >= 0")
        if self.tools.timeout_s is not None and self.tools.timeout_s <= 0:
            return Err("tool timeout must be > 0")
        return Ok(None)
