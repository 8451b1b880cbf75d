"""
Circuit Breaker: Fault Tolerance for the Generation Backend

Implements a three-state breaker per protected operation:
- CLOSED: calls flow through; consecutive failures are counted
- OPEN: threshold reached, calls fail fast without touching the dependency
- HALF_OPEN: reset timeout elapsed, exactly one trial call is admitted

Every transition starts a new generation. Only the trial admitted in the
current HALF_OPEN generation decides HALF_OPEN -> CLOSED or -> OPEN; results of
calls admitted earlier only update the failure counter and last error.

OPEN -> HALF_OPEN happens lazily on the next call, or on a monitor tick when
the background monitor is running. All transitions happen under one
asyncio.Lock so concurrent callers observe a consistent state.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from agentcore.core import constants as C
from agentcore.core.config import CircuitBreakerConfig
from agentcore.core.errors import AgentError, ErrorCategory
from agentcore.core.types import Err, Ok, Result, Timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class CircuitState(Enum):
    """Circuit breaker state."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing fast
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass(frozen=True, slots=True)
class CircuitBreakerRecord:
    """Point-in-time view of one breaker, for diagnostics."""
    operation_name: str
    state: CircuitState
    failure_count: int
    last_state_change_time: Timestamp
    last_error: Optional[str]
    total_requests: int
    rejected_requests: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_name": self.operation_name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "last_state_change_time": self.last_state_change_time.to_iso(),
            "last_error": self.last_error,
            "total_requests": self.total_requests,
            "rejected_requests": self.rejected_requests,
        }


class CircuitBreaker:
    """
    Circuit breaker guarding one external operation.

    Usage:
        breaker = CircuitBreaker("llm_completion")

        result = await breaker.call(lambda: backend.complete(prompt))

        # Or with decorator
        @breaker.wrap
        async def complete(prompt):
            ...
    """

    __slots__ = (
        "_name", "_failure_threshold", "_reset_timeout_s", "_monitor_interval_s",
        "_error_category", "_clock", "_state", "_failure_count", "_last_error",
        "_last_state_change", "_last_state_change_wall", "_trial_in_flight", "_generation",
        "_lock", "_total_requests", "_rejected_requests", "_monitor_task",
    )

    def __init__(
        self,
        operation_name: str,
        failure_threshold: int = C.CIRCUIT_FAILURE_THRESHOLD,
        reset_timeout_s: float = C.CIRCUIT_RESET_TIMEOUT_S,
        monitor_interval_s: float = C.CIRCUIT_MONITOR_INTERVAL_S,
        error_category: ErrorCategory = ErrorCategory.LLM_API,
        clock: Clock = time.monotonic,
    ) -> None:
        """
        Args:
            operation_name: Identifier used in errors, logs and the registry
            failure_threshold: Consecutive failures before opening
            reset_timeout_s: Time spent OPEN before a trial call is allowed
            monitor_interval_s: Tick period of the optional background monitor
            error_category: Category given to failures of the wrapped call
            clock: Monotonic time source (injectable for tests)
        """
        if failure_threshold < 1:
            raise ValueError(f"failure_threshold must be >= 1, got {failure_threshold}")
        if reset_timeout_s < 0:
            raise ValueError(f"reset_timeout_s must be >= 0, got {reset_timeout_s}")

        self._name = operation_name
        self._failure_threshold = failure_threshold
        self._reset_timeout_s = reset_timeout_s
        self._monitor_interval_s = monitor_interval_s
        self._error_category = error_category
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_error: Optional[str] = None
        self._last_state_change = clock()
        self._last_state_change_wall = Timestamp.now()
        self._trial_in_flight = False
        self._generation = 0
        self._lock = asyncio.Lock()
        self._total_requests = 0
        self._rejected_requests = 0
        self._monitor_task: Optional[asyncio.Task[None]] = None

    @classmethod
    def from_config(
        cls,
        operation_name: str,
        config: CircuitBreakerConfig,
        **kwargs: Any,
    ) -> CircuitBreaker:
        return cls(
            operation_name,
            failure_threshold=config.failure_threshold,
            reset_timeout_s=config.reset_timeout_s,
            monitor_interval_s=config.monitor_interval_s,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # EXECUTION
    # -------------------------------------------------------------------------

    async def call(
        self,
        func: Callable[[], Union[T, Awaitable[T]]],
    ) -> Result[T, AgentError]:
        """
        Execute `func` through the breaker.

        Returns:
            Ok with the result, Err(CIRCUIT_OPEN) when rejected, or the
            failure converted to an AgentError of this breaker's category.
        """
        async with self._lock:
            self._total_requests += 1
            self._check_state_transition()

            if self._state == CircuitState.OPEN or (
                self._state == CircuitState.HALF_OPEN and self._trial_in_flight
            ):
                self._rejected_requests += 1
                logger.warning(f"Circuit '{self._name}' is {self._state.name}, rejecting request")
                return Err(AgentError.circuit_open(
                    operation=self._name,
                    failure_count=self._failure_count,
                    retry_after_seconds=self._time_until_half_open(),
                ))

            trial: Optional[int] = None
            if self._state == CircuitState.HALF_OPEN:
                self._trial_in_flight = True
                trial = self._generation

        # Execute outside lock
        try:
            result = func()
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            if self._is_current_trial(trial):
                self._trial_in_flight = False
            raise
        except Exception as e:
            await self._on_failure(e, trial)
            return Err(AgentError.from_exception(e, self._error_category))

        await self._on_success(trial)
        return Ok(result)

    def _is_current_trial(self, trial: Optional[int]) -> bool:
        return (
            trial is not None
            and trial == self._generation
            and self._state == CircuitState.HALF_OPEN
        )

    async def _on_success(self, trial: Optional[int]) -> None:
        async with self._lock:
            if self._is_current_trial(trial):
                self._transition_to(CircuitState.CLOSED)
            elif self._state == CircuitState.CLOSED:
                self._failure_count = 0

    async def _on_failure(self, error: Exception, trial: Optional[int]) -> None:
        async with self._lock:
            self._failure_count += 1
            self._last_error = f"{type(error).__name__}: {error}"

            if self._is_current_trial(trial):
                # Failed trial reopens and restarts the timer
                self._transition_to(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED and self._failure_count >= self._failure_threshold:
                self._transition_to(CircuitState.OPEN)

    def _check_state_transition(self) -> None:
        if self._state == CircuitState.OPEN and self._time_until_half_open() <= 0:
            self._transition_to(CircuitState.HALF_OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._generation += 1
        self._trial_in_flight = False
        self._last_state_change = self._clock()
        self._last_state_change_wall = Timestamp.now()

        if new_state == CircuitState.CLOSED:
            self._failure_count = 0

        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log(f"Circuit '{self._name}': {old_state.name} -> {new_state.name} (failures={self._failure_count})")

    def _time_until_half_open(self) -> float:
        if self._state != CircuitState.OPEN:
            return 0.0
        elapsed = self._clock() - self._last_state_change
        return max(0.0, self._reset_timeout_s - elapsed)

    def wrap(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Result[T, AgentError]]]:
        """Decorator to route every call of `func` through the breaker."""
        async def wrapper(*args: Any, **kwargs: Any) -> Result[T, AgentError]:
            return await self.call(lambda: func(*args, **kwargs))
        return wrapper

    # -------------------------------------------------------------------------
    # MONITOR
    # -------------------------------------------------------------------------

    async def tick(self) -> None:
        """Health-check tick: moves an expired OPEN circuit to HALF_OPEN."""
        async with self._lock:
            self._check_state_transition()

    def start_monitor(self) -> None:
        """Run tick() every monitor interval until stop_monitor(). Needs a running loop."""
        if self._monitor_task is not None and not self._monitor_task.done():
            return
        self._monitor_task = asyncio.get_running_loop().create_task(
            self._monitor_loop(), name=f"circuit-monitor-{self._name}",
        )

    async def stop_monitor(self) -> None:
        task, self._monitor_task = self._monitor_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self._monitor_interval_s)
            await self.tick()

    # -------------------------------------------------------------------------
    # INSPECTION / CONTROL
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Force CLOSED and forget failures."""
        self._last_error = None
        self._transition_to(CircuitState.CLOSED)

    def record(self) -> CircuitBreakerRecord:
        return CircuitBreakerRecord(
            operation_name=self._name,
            state=self._state,
            failure_count=self._failure_count,
            last_state_change_time=self._last_state_change_wall,
            last_error=self._last_error,
            total_requests=self._total_requests,
            rejected_requests=self._rejected_requests,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def is_closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    @property
    def monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()


class CircuitBreakerRegistry:
    """
    Breakers by operation name.

    One registry is built at startup and handed to whoever needs breakers;
    there is no process-wide instance.
    """

    __slots__ = ("_config", "_breakers", "_clock")

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._config = config or CircuitBreakerConfig()
        self._breakers: dict[str, CircuitBreaker] = {}
        self._clock = clock

    def get(self, operation_name: str, **overrides: Any) -> CircuitBreaker:
        """Get or create a breaker; overrides apply only on creation."""
        breaker = self._breakers.get(operation_name)
        if breaker is None:
            options: dict[str, Any] = {
                "failure_threshold": self._config.failure_threshold,
                "reset_timeout_s": self._config.reset_timeout_s,
                "monitor_interval_s": self._config.monitor_interval_s,
                "clock": self._clock,
                **overrides,
            }
            breaker = CircuitBreaker(operation_name, **options)
            self._breakers[operation_name] = breaker
        return breaker

    def records(self) -> dict[str, CircuitBreakerRecord]:
        return {name: cb.record() for name, cb in self._breakers.items()}

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()

    def start_monitors(self) -> None:
        for breaker in self._breakers.values():
            breaker.start_monitor()

    async def stop_monitors(self) -> None:
        for breaker in self._breakers.values():
            await breaker.stop_monitor()

    def __contains__(self, operation_name: str) -> bool:
        return operation_name in self._breakers

    def __len__(self) -> int:
        return len(self._breakers)
