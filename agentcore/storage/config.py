"""
Storage Backend Configuration
=============================

Immutable configuration dataclasses for the key/value backends that hold
session state and memory.

Design Principles:
------------------
1. **Immutability**: configs are frozen to prevent runtime mutation
2. **Validation**: pre-conditions checked at construction time
3. **Environment**: supports loading from environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class BackendType(Enum):
    """Storage backend selection for the factory."""
    IN_MEMORY = "memory"   # Development/testing, single process
    REDIS = "redis"        # Durable, shared between restarts

    @classmethod
    def parse(cls, value: str) -> BackendType:
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown storage backend {value!r}")


# =============================================================================
# REDIS CONFIGURATION
# =============================================================================

@dataclass(frozen=True, slots=True)
class RedisConfig:
    """
    Redis/Valkey connection configuration.

    Attributes:
        host: Redis server hostname or IP address.
        port: Redis server port (1-65535).
        password: Optional authentication password.
        db: Logical database index (0-15).
        max_connections: Connection pool size. Must be > 0.
        connect_timeout_ms: TCP connection timeout in milliseconds.
        socket_timeout_ms: Socket read/write timeout in milliseconds.
        ssl: Enable TLS encryption for connections.
        key_prefix: Namespace prepended to every key.
        key_ttl_seconds: Expiry applied on every write; None keeps keys forever.

    Example:
        >>> config = RedisConfig.from_env()
        >>> config = RedisConfig(host="redis.example.com", password="secret")
    """
    password: Optional[str] = None
    host: str = "localhost"
    key_prefix: str = "agentcore:"
    key_ttl_seconds: Optional[int] = None

    socket_timeout_ms: int = 5000
    connect_timeout_ms: int = 2000
    max_connections: int = 50
    port: int = 6379
    db: int = 0

    ssl: bool = False

    def __post_init__(self) -> None:
        """
        Validate configuration invariants.

        Raises:
            ValueError: If any invariant is violated.
        """
        if not (1 <= self.port <= 65535):
            raise ValueError(f"port must be in [1, 65535], got {self.port}")
        if not (0 <= self.db <= 15):
            raise ValueError(f"db must be in [0, 15], got {self.db}")
        if self.max_connections <= 0:
            raise ValueError(f"max_connections must be > 0, got {self.max_connections}")
        if self.connect_timeout_ms <= 0:
            raise ValueError(f"connect_timeout_ms must be > 0, got {self.connect_timeout_ms}")
        if self.socket_timeout_ms <= 0:
            raise ValueError(f"socket_timeout_ms must be > 0, got {self.socket_timeout_ms}")
        if self.key_ttl_seconds is not None and self.key_ttl_seconds <= 0:
            raise ValueError(f"key_ttl_seconds must be > 0, got {self.key_ttl_seconds}")

    @classmethod
    def from_env(cls, prefix: str = "AGENTCORE_REDIS") -> RedisConfig:
        """
        Construct configuration from environment variables.

        Environment Variables:
        - {prefix}_HOST: Server hostname (default: localhost)
        - {prefix}_PORT: Server port (default: 6379)
        - {prefix}_PASSWORD: Authentication password
        - {prefix}_DB: Database index (default: 0)
        - {prefix}_SSL: Enable TLS (default: false)
        - {prefix}_MAX_CONNECTIONS: Pool size (default: 50)
        - {prefix}_KEY_PREFIX: Key namespace (default: agentcore:)
        - {prefix}_KEY_TTL_SECONDS: Expiry for written keys (default: none)

        Raises:
            ValueError: On malformed numeric values.
        """
        def _get(key: str, default: str = "") -> str:
            return os.environ.get(f"{prefix}_{key}", default)

        def _get_int(key: str, default: int) -> int:
            val = _get(key)
            return int(val) if val else default

        def _get_bool(key: str, default: bool) -> bool:
            val = _get(key).lower()
            if val in ("true", "1", "yes"):
                return True
            if val in ("false", "0", "no"):
                return False
            return default

        ttl = _get("KEY_TTL_SECONDS")

        return cls(
            host=_get("HOST", "localhost"),
            port=_get_int("PORT", 6379),
            password=_get("PASSWORD") or None,
            db=_get_int("DB", 0),
            max_connections=_get_int("MAX_CONNECTIONS", 50),
            connect_timeout_ms=_get_int("CONNECT_TIMEOUT_MS", 2000),
            socket_timeout_ms=_get_int("SOCKET_TIMEOUT_MS", 5000),
            ssl=_get_bool("SSL", False),
            key_prefix=_get("KEY_PREFIX", "agentcore:"),
            key_ttl_seconds=int(ttl) if ttl else None,
        )

    def get_connection_kwargs(self) -> Dict[str, Any]:
        """Generate kwargs for redis.asyncio.Redis()."""
        kwargs: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "db": self.db,
            "max_connections": self.max_connections,
            "socket_connect_timeout": self.connect_timeout_ms / 1000.0,
            "socket_timeout": self.socket_timeout_ms / 1000.0,
            # Values are binary codec frames
            "decode_responses": False,
            "ssl": self.ssl,
        }
        if self.password:
            kwargs["password"] = self.password
        return kwargs
