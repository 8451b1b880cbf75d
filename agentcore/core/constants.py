"""
Engine-Wide Constants

All magic numbers and configuration defaults centralized here.
"""

from typing import Final

# =============================================================================
# SIZE AND TIME UNITS
# =============================================================================
KB: Final[int] = 1024

SECOND_MS: Final[int] = 1000

# =============================================================================
# TOKEN ESTIMATION
# =============================================================================
CHARS_PER_TOKEN: Final[int] = 4

# =============================================================================
# SHORT-TERM / LONG-TERM MEMORY
# =============================================================================
MAX_SHORT_TERM_TURNS: Final[int] = 10
MAX_LONG_TERM_MEMORIES: Final[int] = 100
MAX_RELEVANT_MEMORIES: Final[int] = 5
SUMMARIZE_AFTER_TURNS: Final[int] = 15

BASE_IMPORTANCE: Final[float] = 1.0
LONG_INPUT_CHARS: Final[int] = 100
LONG_INPUT_BOOST: Final[float] = 0.2
QUESTION_BOOST: Final[float] = 0.3
LONG_RESPONSE_CHARS: Final[int] = 200
LONG_RESPONSE_BOOST: Final[float] = 0.2

MIN_KEYWORD_LENGTH: Final[int] = 4     # words must be longer than 3 chars
ACCESS_BOOST_PER_HIT: Final[float] = 0.1
ACCESS_BOOST_CAP: Final[float] = 0.5

MIN_HISTORY_BEFORE_MEMORY_TRIM: Final[int] = 2

# =============================================================================
# CONTEXT / PROMPT BUDGETS
# =============================================================================
MAX_CONTEXT_TOKENS: Final[int] = 6000
MAX_PROMPT_TOKENS: Final[int] = 8000
DEFAULT_SYSTEM_PROMPT: Final[str] = "You are a helpful assistant."

# =============================================================================
# RELIABILITY
# =============================================================================
CIRCUIT_FAILURE_THRESHOLD: Final[int] = 5
CIRCUIT_RESET_TIMEOUT_S: Final[float] = 30.0
CIRCUIT_MONITOR_INTERVAL_S: Final[float] = 5.0
TOOL_TIMEOUT_S: Final[float] = 30.0

# =============================================================================
# OBSERVABILITY
# =============================================================================
SLOW_REQUEST_MS: Final[float] = 2000.0

# =============================================================================
# VALUE CODEC
# =============================================================================
COMPRESSION_THRESHOLD: Final[int] = 1 * KB  # Compress stored values above 1KB
