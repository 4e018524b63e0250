# =============================================================================
# TESTES - Record Store
# =============================================================================
# Coleções por usuário sobre o KV do AgentFS
# =============================================================================

from datetime import datetime, timezone
from enum import Enum
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio


class TestToJsonable:
    """Conversão para tipos JSON."""

    def test_nested_values(self):
        from storage import to_jsonable

        class Color(str, Enum):
            RED = "red"

        moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        result = to_jsonable({"when": moment, "color": Color.RED, "items": ({1}, [moment])})

        assert result == {
            "when": "2024-05-01T12:00:00+00:00",
            "color": "red",
            "items": [[1], ["2024-05-01T12:00:00+00:00"]],
        }

    def test_pydantic_model(self):
        from providers.base import ProviderConfig
        from storage import to_jsonable

        data = to_jsonable(ProviderConfig(provider="openai", api_key="sk-x"))

        assert data["provider"] == "openai"


class TestRecordStoreCrud:
    """Insert, get, update, upsert e delete."""

    @pytest.mark.asyncio
    async def test_insert_adds_bookkeeping(self, record_store, mock_agentfs_with_data):
        from storage import Collection

        record = await record_store.insert(Collection.CHAT_SESSIONS, "u1", {"session_name": "Chat"})

        assert record["user_id"] == "u1"
        assert record["id"]
        assert record["created_at"] == record["updated_at"]
        assert f"ai_chat_sessions:u1:{record['id']}" in mock_agentfs_with_data._storage

    @pytest.mark.asyncio
    async def test_insert_uses_explicit_id(self, record_store):
        from storage import Collection

        record = await record_store.insert(Collection.CHAT_SESSIONS, "u1", {"id": "abc"})
        other = await record_store.insert(Collection.CHAT_SESSIONS, "u1", {}, record_id="xyz")

        assert record["id"] == "abc"
        assert other["id"] == "xyz"

    @pytest.mark.asyncio
    async def test_insert_refuses_existing_id(self, record_store):
        """Insert nunca sobrescreve um registro existente."""
        from core.exceptions import ConflictError
        from storage import Collection

        await record_store.insert(Collection.CHAT_SESSIONS, "u1", {"name": "first"}, record_id="s1")

        with pytest.raises(ConflictError) as exc:
            await record_store.insert(Collection.CHAT_SESSIONS, "u1", {"name": "second"}, record_id="s1")

        assert exc.value.status_code == 409
        assert exc.value.details["record_id"] == "s1"
        stored = await record_store.get(Collection.CHAT_SESSIONS, "u1", "s1")
        assert stored["name"] == "first"

    @pytest.mark.asyncio
    async def test_get_is_scoped_to_user(self, record_store):
        from storage import Collection

        await record_store.insert(Collection.CHAT_SESSIONS, "u1", {}, record_id="s1")

        assert await record_store.get(Collection.CHAT_SESSIONS, "u1", "s1") is not None
        assert await record_store.get(Collection.CHAT_SESSIONS, "u2", "s1") is None

    @pytest.mark.asyncio
    async def test_require_missing(self, record_store):
        from core.exceptions import NotFoundError
        from storage import Collection

        with pytest.raises(NotFoundError):
            await record_store.require(Collection.CHAT_SESSIONS, "u1", "ghost")

    @pytest.mark.asyncio
    async def test_update_merges(self, record_store):
        from storage import Collection

        await record_store.insert(Collection.CHAT_SESSIONS, "u1", {"a": 1, "b": 2}, record_id="s1")

        updated = await record_store.update(Collection.CHAT_SESSIONS, "u1", "s1", {"b": 3, "id": "hijack"})

        assert updated["a"] == 1
        assert updated["b"] == 3
        assert updated["id"] == "s1"

    @pytest.mark.asyncio
    async def test_upsert(self, record_store):
        from storage import Collection

        first = await record_store.upsert(Collection.SERVICE_CONFIGS, "u1", "openai", {"model": "a"})
        second = await record_store.upsert(Collection.SERVICE_CONFIGS, "u1", "openai", {"model": "b"})

        assert first["created_at"] == second["created_at"]
        assert second["model"] == "b"
        assert await record_store.count(Collection.SERVICE_CONFIGS, "u1") == 1

    @pytest.mark.asyncio
    async def test_delete(self, record_store):
        from storage import Collection

        await record_store.insert(Collection.CHAT_SESSIONS, "u1", {}, record_id="s1")

        assert await record_store.delete(Collection.CHAT_SESSIONS, "u1", "s1") is True
        assert await record_store.delete(Collection.CHAT_SESSIONS, "u1", "s1") is False

    @pytest.mark.asyncio
    async def test_insert_failure_wrapped(self, mock_agentfs):
        from core.exceptions import StorageError
        from storage import Collection, RecordStore

        mock_agentfs.kv.set = AsyncMock(side_effect=OSError("read-only"))

        with pytest.raises(StorageError) as exc:
            await RecordStore(mock_agentfs).insert(Collection.CHAT_SESSIONS, "u1", {})

        assert exc.value.details["collection"] == "ai_chat_sessions"


class TestRecordStoreSelect:
    """Consulta com filtros e ordenação."""

    @pytest_asyncio.fixture
    async def populated(self, record_store):
        from storage import Collection

        for i, (session, created) in enumerate(
            [("a", "2024-01-03"), ("b", "2024-01-01"), ("a", "2024-01-02")]
        ):
            await record_store.insert(
                Collection.CHAT_MESSAGES,
                "u1",
                {"session_id": session, "created_at": created, "n": i},
                record_id=f"m{i}",
            )
        await record_store.insert(Collection.CHAT_MESSAGES, "u1", {"session_id": "a"}, record_id="m9")
        return record_store

    @pytest.mark.asyncio
    async def test_filters_and_order(self, populated):
        from storage import Collection

        records = await populated.select(
            Collection.CHAT_MESSAGES, "u1", filters={"session_id": "a"},
            order_by="created_at", descending=False,
        )

        assert [r["id"] for r in records][:2] == ["m2", "m0"]

    @pytest.mark.asyncio
    async def test_where_and_limit(self, populated):
        from storage import Collection

        records = await populated.select(
            Collection.CHAT_MESSAGES, "u1", where=lambda r: r.get("n", 99) < 2,
            order_by="n", limit=1,
        )

        assert [r["id"] for r in records] == ["m1"]

    @pytest.mark.asyncio
    async def test_delete_where(self, populated):
        from storage import Collection

        removed = await populated.delete_where(
            Collection.CHAT_MESSAGES, "u1", lambda r: r.get("session_id") == "a"
        )

        assert removed == 3
        assert await populated.count(Collection.CHAT_MESSAGES, "u1") == 1
