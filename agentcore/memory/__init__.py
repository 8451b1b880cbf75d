"""
Memory Module: Short-Term History and Long-Term Relevance Memory

Provides:
- HybridMemoryManager: per-session history, memories and summary
- MemoryContext: budget-fitted bundle handed to prompt assembly
- Summarizers: extractive (default) and backend-delegating
"""

from agentcore.memory.models import (
    Interaction,
    MemoryContext,
    MemoryEntry,
    MemorySnapshot,
)
from agentcore.memory.budget import estimate_tokens, optimize_context
from agentcore.memory.summarizer import (
    BackendSummarizer,
    ExtractiveSummarizer,
    Summarizer,
)
from agentcore.memory.manager import HybridMemoryManager

__all__ = [
    "Interaction",
    "MemoryContext",
    "MemoryEntry",
    "MemorySnapshot",
    "estimate_tokens",
    "optimize_context",
    "BackendSummarizer",
    "ExtractiveSummarizer",
    "Summarizer",
    "HybridMemoryManager",
]
