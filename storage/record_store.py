"""Record Store - Coleções de registros por usuário sobre o KV do AgentFS."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

from core.exceptions import ConflictError, NotFoundError, StorageError
from core.logger import get_logger

logger = get_logger("record_store")


class Collection(str, Enum):
    """Coleções persistidas."""

    QUIZ_SESSIONS = "quiz_sessions"
    ADVANCED_QUIZ_SESSIONS = "advanced_quiz_sessions"
    NOTE_ENHANCEMENTS = "note_enhancements"
    CHAT_SESSIONS = "ai_chat_sessions"
    CHAT_MESSAGES = "ai_chat_messages"
    USAGE_TRACKING = "ai_usage_tracking"
    HISTORY_PREFERENCES = "ai_history_preferences"
    SERVICE_CONFIGS = "ai_service_configs"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_jsonable(value: Any) -> Any:
    """Converte modelos, datas e enums para tipos JSON."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


class RecordStore:
    """Abstração sobre AgentFS para coleções de registros.

    Estrutura de chaves:
        - {collection}:{user_id}:{record_id} -> registro (dict)

    Todo registro recebe id, user_id, created_at e updated_at.

    Example:
        >>> store = RecordStore(agentfs)
        >>> record = await store.insert(Collection.CHAT_SESSIONS, "u1", {"name": "Chat"})
        >>> await store.get(Collection.CHAT_SESSIONS, "u1", record["id"])
    """

    def __init__(self, agentfs: AgentFS):
        self.agentfs = agentfs

    @staticmethod
    def _name(collection: Collection | str) -> str:
        return collection.value if isinstance(collection, Collection) else collection

    def _key(self, collection: Collection | str, user_id: str, record_id: str) -> str:
        return f"{self._name(collection)}:{user_id}:{record_id}"

    def _prefix(self, collection: Collection | str, user_id: str | None = None) -> str:
        if user_id is None:
            return f"{self._name(collection)}:"
        return f"{self._name(collection)}:{user_id}:"

    async def _keys(self, prefix: str) -> list[str]:
        entries = await self.agentfs.kv.list(prefix=prefix)
        keys = []
        for entry in entries:
            key = entry.get("key", "") if isinstance(entry, dict) else str(entry)
            if key.startswith(prefix):
                keys.append(key)
        return keys

    # =========================================================================
    # CRUD
    # =========================================================================

    async def insert(
        self,
        collection: Collection | str,
        user_id: str,
        data: dict[str, Any] | BaseModel,
        record_id: str | None = None,
    ) -> dict[str, Any]:
        """Insere registro novo (nunca sobrescreve; use upsert para isso).

        Args:
            collection: Coleção destino
            user_id: Dono do registro
            data: Campos do registro
            record_id: ID explícito (padrão: data["id"] ou uuid4)

        Returns:
            Registro persistido

        Raises:
            ConflictError: Já existe registro com o mesmo ID
            StorageError: Falha de escrita no AgentFS
        """
        record = to_jsonable(data)
        record_id = record_id or record.get("id") or str(uuid.uuid4())
        if await self.get(collection, user_id, record_id) is not None:
            raise ConflictError(
                f"Registro {record_id} já existe",
                {"collection": self._name(collection), "record_id": record_id},
            )
        now = utcnow_iso()
        record.update({"id": record_id, "user_id": user_id})
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)

        try:
            await self.agentfs.kv.set(self._key(collection, user_id, record_id), record)
        except Exception as e:
            logger.error(
                "Falha ao inserir registro",
                collection=self._name(collection),
                record_id=record_id,
                error=str(e),
            )
            raise StorageError(
                "Falha ao persistir registro",
                {"collection": self._name(collection), "record_id": record_id},
            ) from e

        logger.debug("Registro inserido", collection=self._name(collection), record_id=record_id)
        return record

    async def get(
        self, collection: Collection | str, user_id: str, record_id: str
    ) -> dict[str, Any] | None:
        """Busca registro por ID (None se não existir)."""
        return await self.agentfs.kv.get(self._key(collection, user_id, record_id))

    async def require(
        self, collection: Collection | str, user_id: str, record_id: str
    ) -> dict[str, Any]:
        """Busca registro ou levanta NotFoundError."""
        record = await self.get(collection, user_id, record_id)
        if record is None:
            raise NotFoundError(
                f"Registro {record_id} não encontrado",
                {"collection": self._name(collection), "record_id": record_id},
            )
        return record

    async def select(
        self,
        collection: Collection | str,
        user_id: str,
        filters: dict[str, Any] | None = None,
        where: Callable[[dict[str, Any]], bool] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Lista registros do usuário com filtros de igualdade e ordenação.

        Args:
            filters: Campos que devem ser iguais (ex: {"session_id": "abc"})
            where: Predicado adicional
            order_by: Campo de ordenação (registros sem o campo vão para o fim)
            descending: Ordem decrescente
            limit: Máximo de registros
        """
        records = []
        for key in await self._keys(self._prefix(collection, user_id)):
            record = await self.agentfs.kv.get(key)
            if not isinstance(record, dict):
                continue
            if filters and any(record.get(k) != v for k, v in filters.items()):
                continue
            if where is not None and not where(record):
                continue
            records.append(record)

        if order_by:
            present = [r for r in records if r.get(order_by) is not None]
            missing = [r for r in records if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            records = present + missing

        if limit is not None:
            records = records[:limit]
        return records

    async def update(
        self,
        collection: Collection | str,
        user_id: str,
        record_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Atualiza campos de um registro existente."""
        record = await self.require(collection, user_id, record_id)
        record.update(to_jsonable(changes))
        record["id"] = record_id
        record["user_id"] = user_id
        record["updated_at"] = changes.get("updated_at") or utcnow_iso()
        await self.agentfs.kv.set(self._key(collection, user_id, record_id), record)
        return record

    async def upsert(
        self,
        collection: Collection | str,
        user_id: str,
        record_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """Atualiza se existir, insere caso contrário."""
        if await self.get(collection, user_id, record_id) is None:
            return await self.insert(collection, user_id, data, record_id=record_id)
        return await self.update(collection, user_id, record_id, data)

    async def delete(self, collection: Collection | str, user_id: str, record_id: str) -> bool:
        """Remove registro (hard delete). Retorna False se não existia."""
        key = self._key(collection, user_id, record_id)
        if await self.agentfs.kv.get(key) is None:
            return False
        await self.agentfs.kv.delete(key)
        logger.debug("Registro removido", collection=self._name(collection), record_id=record_id)
        return True

    async def delete_where(
        self,
        collection: Collection | str,
        user_id: str,
        predicate: Callable[[dict[str, Any]], bool],
    ) -> int:
        """Remove registros que satisfazem o predicado. Retorna quantidade."""
        records = await self.select(collection, user_id, where=predicate)
        for record in records:
            await self.agentfs.kv.delete(self._key(collection, user_id, record["id"]))
        return len(records)

    async def count(self, collection: Collection | str, user_id: str) -> int:
        return len(await self._keys(self._prefix(collection, user_id)))
