"""
Storage module: key/value persistence for session state and memory.
"""

from agentcore.storage.codec import decode_value, encode_value
from agentcore.storage.config import BackendType, RedisConfig
from agentcore.storage.protocols import KeyValueStore, memory_key, state_key
from agentcore.storage.memory_store import InMemoryKeyValueStore
from agentcore.storage.redis_store import RedisKeyValueStore

__all__ = [
    "decode_value",
    "encode_value",
    "BackendType",
    "RedisConfig",
    "KeyValueStore",
    "memory_key",
    "state_key",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
]
