"""
Unit Tests: Key/Value Storage, Session State and Session Locks

Tests:
    - InMemoryKeyValueStore isolation and key listing
    - Value codec framing and LZ4 compression
    - RedisKeyValueStore against a fake redis.asyncio client
    - SessionStateStore merge semantics and failure mapping
    - SessionLockTable serialization
"""

import asyncio

from agentcore.core.errors import ErrorCategory
from agentcore.core.types import Err
from agentcore.memory.manager import HybridMemoryManager
from agentcore.memory.models import Interaction
from agentcore.session.locks import SessionLockTable
from agentcore.session.state_store import SessionStateStore
from agentcore.storage.codec import decode_value, encode_value, is_compressed
from agentcore.storage.config import RedisConfig
from agentcore.storage.memory_store import InMemoryKeyValueStore
from agentcore.storage.protocols import KeyValueStore, memory_key, state_key
from agentcore.storage.redis_store import RedisKeyValueStore


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the store."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.expiry = {}
        self.fail = fail
        self.closed = False

    async def ping(self):
        if self.fail:
            raise ConnectionError("refused")
        return True

    async def get(self, key):
        if self.fail:
            raise ConnectionError("refused")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    async def scan_iter(self, match=None, count=None):
        prefix = (match or "*").rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key.encode("utf-8")

    async def aclose(self):
        self.closed = True


class BrokenStore:
    """Store whose every operation fails."""

    async def get(self, key):
        return Err("disk on fire")

    async def put(self, key, value):
        return Err("disk on fire")

    async def delete(self, key):
        return Err("disk on fire")

    async def keys(self, prefix=""):
        return Err("disk on fire")


class TestKeys:
    """Tests for key naming."""

    def test_key_namespaces(self):
        assert state_key("s1") == "state:s1"
        assert memory_key("s1") == "memory:s1"


class TestInMemoryStore:
    """Tests for InMemoryKeyValueStore."""

    def test_missing_key_reads_none(self):
        store = InMemoryKeyValueStore()
        assert asyncio.run(store.get("nope")).unwrap() is None

    def test_values_are_copied(self):
        store = InMemoryKeyValueStore()

        async def scenario():
            original = {"items": [1, 2]}
            await store.put("k", original)
            original["items"].append(3)
            first = (await store.get("k")).unwrap()
            first["items"].append(4)
            return (await store.get("k")).unwrap()

        assert asyncio.run(scenario()) == {"items": [1, 2]}

    def test_delete_and_keys(self):
        store = InMemoryKeyValueStore()

        async def scenario():
            await store.put("state:b", {})
            await store.put("state:a", {})
            await store.put("memory:a", {})
            listed = (await store.keys("state:")).unwrap()
            removed = (await store.delete("state:a")).unwrap()
            removed_again = (await store.delete("state:a")).unwrap()
            return listed, removed, removed_again

        listed, removed, removed_again = asyncio.run(scenario())
        assert listed == ["state:a", "state:b"]
        assert removed is True
        assert removed_again is False
        assert len(store) == 2

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryKeyValueStore(), KeyValueStore)


class TestValueCodec:
    """Tests for the stored value framing."""

    def test_small_value_is_not_compressed(self):
        data = encode_value({"a": "b"}).unwrap()
        assert data[0] == 0x01
        assert data[1] == 0x00
        assert not is_compressed(data)

    def test_large_value_is_compressed(self):
        value = {"history": ["question " * 20 for _ in range(10)]}
        data = encode_value(value).unwrap()

        assert is_compressed(data)
        assert decode_value(data).unwrap() == value

    def test_compression_can_be_disabled(self):
        data = encode_value("x" * 5000, compress=False).unwrap()
        assert not is_compressed(data)

    def test_unserializable(self):
        assert encode_value({"bad": object()}).error.startswith("Serialization error")

    def test_truncated(self):
        assert decode_value(b"\x01").error == "Payload is truncated"

    def test_unknown_version(self):
        assert decode_value(b"\x02\x00{}").error == "Unsupported payload version 2"

    def test_corrupt_body(self):
        assert decode_value(b"\x01\x00{not json").error.startswith("Corrupt payload")
        assert decode_value(b"\x01\x01not lz4").error.startswith("Corrupt payload")


class TestRedisStore:
    """Tests for RedisKeyValueStore with a fake client."""

    def test_put_writes_prefixed_frame_with_ttl(self):
        client = FakeRedis()
        store = RedisKeyValueStore(RedisConfig(key_ttl_seconds=60), client=client)

        asyncio.run(store.put("state:s1", {"theme": "dark"}))

        assert decode_value(client.data["agentcore:state:s1"]).unwrap() == {"theme": "dark"}
        assert client.expiry["agentcore:state:s1"] == 60

    def test_get_decodes(self):
        client = FakeRedis()
        client.data["agentcore:state:s1"] = encode_value({"count": 3}).unwrap()
        store = RedisKeyValueStore(client=client)

        assert asyncio.run(store.get("state:s1")).unwrap() == {"count": 3}
        assert asyncio.run(store.get("state:s2")).unwrap() is None

    def test_corrupt_value(self):
        client = FakeRedis()
        client.data["agentcore:x"] = b"{bad"
        store = RedisKeyValueStore(client=client)

        assert asyncio.run(store.get("x")).error.startswith("Corrupt value at x")

    def test_keys_strip_prefix(self):
        client = FakeRedis()
        store = RedisKeyValueStore(client=client)

        async def scenario():
            await store.put("memory:b", {})
            await store.put("memory:a", {})
            await store.put("state:a", {})
            return (await store.keys("memory:")).unwrap()

        assert asyncio.run(scenario()) == ["memory:a", "memory:b"]

    def test_delete(self):
        client = FakeRedis()
        store = RedisKeyValueStore(client=client)

        async def scenario():
            await store.put("k", 1)
            return (await store.delete("k")).unwrap(), (await store.delete("k")).unwrap()

        assert asyncio.run(scenario()) == (True, False)

    def test_not_connected(self):
        store = RedisKeyValueStore()
        assert store.connected is False
        assert asyncio.run(store.get("k")).error == "Not connected"
        assert asyncio.run(store.put("k", 1)).error == "Not connected"

    def test_client_errors_become_err(self):
        store = RedisKeyValueStore(client=FakeRedis(fail=True))
        assert asyncio.run(store.get("k")).error == "Redis error: refused"

    def test_connect_failure(self):
        store = RedisKeyValueStore(client=FakeRedis(fail=True))
        result = asyncio.run(store.connect())
        assert result.error == "Redis connection failed: refused"
        assert store.connected is False

    def test_unserializable_value(self):
        store = RedisKeyValueStore(client=FakeRedis())
        assert asyncio.run(store.put("k", {"bad": object()})).error.startswith("Serialization error")

    def test_close(self):
        client = FakeRedis()
        store = RedisKeyValueStore(client=client)
        asyncio.run(store.close())
        asyncio.run(store.close())
        assert client.closed is True
        assert store.connected is False

    def test_memory_snapshot_is_compressed(self):
        client = FakeRedis()
        manager = HybridMemoryManager(RedisKeyValueStore(client=client))

        async def scenario():
            for i in range(5):
                await manager.store_interaction("s1", Interaction(f"question {i} " * 20, "answer " * 30))
            return (await manager.get_context("s1", "question")).unwrap()

        context = asyncio.run(scenario())
        raw = client.data["agentcore:memory:s1"]
        assert is_compressed(raw)
        assert decode_value(raw).unwrap()["turn_count"] == 5
        assert len(context.history) == 5


class TestSessionStateStore:
    """Tests for SessionStateStore."""

    def test_unseen_session_is_empty(self):
        store = SessionStateStore(InMemoryKeyValueStore())
        assert asyncio.run(store.get("s1")).unwrap() == {}

    def test_update_merges_shallowly(self):
        store = SessionStateStore(InMemoryKeyValueStore())

        async def scenario():
            await store.update("s1", {"theme": "dark", "prefs": {"a": 1}})
            merged = (await store.update("s1", {"prefs": {"b": 2}, "lang": "en"})).unwrap()
            stored = (await store.get("s1")).unwrap()
            return merged, stored

        merged, stored = asyncio.run(scenario())
        assert merged == {"theme": "dark", "prefs": {"b": 2}, "lang": "en"}
        assert stored == merged

    def test_sessions_are_isolated(self):
        store = SessionStateStore(InMemoryKeyValueStore())

        async def scenario():
            await store.update("s1", {"theme": "dark"})
            return (await store.get("s2")).unwrap()

        assert asyncio.run(scenario()) == {}

    def test_clear(self):
        store = SessionStateStore(InMemoryKeyValueStore())

        async def scenario():
            await store.update("s1", {"theme": "dark"})
            cleared = (await store.clear("s1")).unwrap()
            return cleared, (await store.get("s1")).unwrap()

        assert asyncio.run(scenario()) == (True, {})

    def test_non_map_state_is_storage_error(self):
        backing = InMemoryKeyValueStore()
        store = SessionStateStore(backing)

        async def scenario():
            await backing.put(state_key("s1"), ["not", "a", "map"])
            return await store.get("s1")

        result = asyncio.run(scenario())
        assert result.error.category == ErrorCategory.MEMORY_STORAGE

    def test_backend_failure(self):
        store = SessionStateStore(BrokenStore())

        got = asyncio.run(store.get("s1"))
        assert got.error.category == ErrorCategory.MEMORY_STORAGE
        assert got.error.message == "Failed to retrieve state: disk on fire"

        updated = asyncio.run(store.update("s1", {"a": 1}))
        assert updated.error.context["operation"] == "update state"


class TestSessionLockTable:
    """Tests for SessionLockTable."""

    def _record(self, locks, events, session_id, name):
        async def worker():
            async with locks.hold(session_id):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")
        return worker()

    def test_same_session_is_serialized(self):
        locks = SessionLockTable()
        events = []

        async def scenario():
            await asyncio.gather(
                self._record(locks, events, "s1", "a"),
                self._record(locks, events, "s1", "b"),
            )

        asyncio.run(scenario())
        assert events == ["a-in", "a-out", "b-in", "b-out"]
        assert locks.active_sessions() == 0

    def test_different_sessions_overlap(self):
        locks = SessionLockTable()
        events = []

        async def scenario():
            await asyncio.gather(
                self._record(locks, events, "s1", "a"),
                self._record(locks, events, "s2", "b"),
            )

        asyncio.run(scenario())
        assert events[:2] == ["a-in", "b-in"]

    def test_is_locked(self):
        locks = SessionLockTable()

        async def scenario():
            async with locks.hold("s1"):
                inside = locks.is_locked("s1"), locks.active_sessions()
            return inside, locks.is_locked("s1")

        assert asyncio.run(scenario()) == ((True, 1), False)
