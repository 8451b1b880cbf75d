"""
Value Codec for Durable Stores

Frames JSON-compatible values as bytes for stores that keep raw payloads
(Redis). Large bodies are LZ4-frame compressed so long conversation
histories stay cheap to hold and ship.

Binary layout:
    version (1 byte) + flags (1 byte) + JSON body
    flags bit 0 set => body is LZ4-frame compressed (bodies >= 1 KiB)
"""

from __future__ import annotations

import json
import struct
from typing import Any

import lz4.frame

from agentcore.core import constants as C
from agentcore.core.types import Err, Ok, Result

CODEC_VERSION = 0x01
FLAG_COMPRESSED = 0x01
_HEADER = struct.Struct(">BB")


def encode_value(
    value: Any,
    compress: bool = True,
    threshold: int = C.COMPRESSION_THRESHOLD,
) -> Result[bytes, str]:
    """Serialize `value` to a framed payload; Err if it is not JSON-compatible."""
    try:
        body = json.dumps(value, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        return Err(f"Serialization error: {e}")

    flags = 0x00
    if compress and len(body) >= threshold:
        body = lz4.frame.compress(body)
        flags |= FLAG_COMPRESSED
    return Ok(_HEADER.pack(CODEC_VERSION, flags) + body)


def decode_value(data: bytes) -> Result[Any, str]:
    if len(data) < _HEADER.size:
        return Err("Payload is truncated")
    version, flags = _HEADER.unpack_from(data)
    if version != CODEC_VERSION:
        return Err(f"Unsupported payload version {version}")

    body = data[_HEADER.size:]
    try:
        if flags & FLAG_COMPRESSED:
            body = lz4.frame.decompress(body)
        return Ok(json.loads(body.decode("utf-8")))
    except (RuntimeError, ValueError) as e:
        return Err(f"Corrupt payload: {e}")


def is_compressed(data: bytes) -> bool:
    return len(data) >= _HEADER.size and bool(data[1] & FLAG_COMPRESSED)
