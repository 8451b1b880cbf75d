"""
Agent module: orchestration pipeline, prompt assembly, backend interface and
governance hooks.
"""

from agentcore.agent.backend import BackendError, EchoBackend, GenerationBackend
from agentcore.agent.prompt import PromptBuilder
from agentcore.agent.governance import DecisionObserver, DecisionRecord, RecordingObserver
from agentcore.agent.orchestrator import AgentOrchestrator
from agentcore.agent.factory import build_agent, build_store, configure_logging, running_agent

__all__ = [
    "BackendError",
    "EchoBackend",
    "GenerationBackend",
    "PromptBuilder",
    "DecisionObserver",
    "DecisionRecord",
    "RecordingObserver",
    "AgentOrchestrator",
    "build_agent",
    "build_store",
    "configure_logging",
    "running_agent",
]
