"""Chat Store - Sessões e mensagens de chat sobre o RecordStore."""

import uuid
from datetime import datetime, timezone
from typing import Any

from core.exceptions import NotFoundError, ValidationError
from core.logger import get_logger
from storage import Collection, RecordStore, utcnow_iso

logger = get_logger("chat_store")

MAX_SESSION_NAME_LENGTH = 100


def default_session_name(today: datetime | None = None) -> str:
    return f"Chat {(today or datetime.now(timezone.utc)).strftime('%Y-%m-%d')}"


class ChatStore:
    """Persistência de sessões (ai_chat_sessions) e mensagens (ai_chat_messages)."""

    def __init__(self, store: RecordStore):
        self.store = store

    # =========================================================================
    # Sessões
    # =========================================================================

    async def create_session(
        self,
        user_id: str,
        name: str | None = None,
        context_type: str | None = None,
        context_id: str | None = None,
    ) -> dict[str, Any]:
        session = await self.store.insert(
            Collection.CHAT_SESSIONS,
            user_id,
            {
                "id": str(uuid.uuid4()),
                "session_name": (name or default_session_name())[:MAX_SESSION_NAME_LENGTH],
                "context_type": context_type,
                "context_id": context_id,
                "total_messages": 0,
            },
        )
        logger.info("Sessão de chat criada", user_id=user_id, session_id=session["id"])
        return session

    async def get_session(self, user_id: str, session_id: str) -> dict[str, Any]:
        return await self.store.require(Collection.CHAT_SESSIONS, user_id, session_id)

    async def list_sessions(self, user_id: str, limit: int = 50) -> list[dict[str, Any]]:
        return await self.store.select(
            Collection.CHAT_SESSIONS, user_id, order_by="updated_at", limit=limit
        )

    async def rename_session(self, user_id: str, session_id: str, name: str) -> dict[str, Any]:
        name = name.strip()
        if not name:
            raise ValidationError("Session name cannot be empty", errors=["name is required"])
        return await self.store.update(
            Collection.CHAT_SESSIONS,
            user_id,
            session_id,
            {"session_name": name[:MAX_SESSION_NAME_LENGTH]},
        )

    async def delete_session(self, user_id: str, session_id: str) -> int:
        """Remove sessão e mensagens. Retorna quantidade de mensagens removidas."""
        if not await self.store.delete(Collection.CHAT_SESSIONS, user_id, session_id):
            raise NotFoundError(f"Chat session {session_id} not found", {"session_id": session_id})
        removed = await self.store.delete_where(
            Collection.CHAT_MESSAGES, user_id, lambda r: r.get("session_id") == session_id
        )
        logger.info("Sessão de chat removida", session_id=session_id, messages=removed)
        return removed

    async def bump_session(self, user_id: str, session_id: str, added: int = 1) -> dict[str, Any]:
        session = await self.get_session(user_id, session_id)
        return await self.store.update(
            Collection.CHAT_SESSIONS,
            user_id,
            session_id,
            {
                "total_messages": int(session.get("total_messages") or 0) + added,
                "updated_at": utcnow_iso(),
            },
        )

    # =========================================================================
    # Mensagens
    # =========================================================================

    async def add_message(
        self,
        user_id: str,
        session_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.store.insert(
            Collection.CHAT_MESSAGES,
            user_id,
            {
                "id": str(uuid.uuid4()),
                "session_id": session_id,
                "role": role,
                "content": content,
                "metadata": metadata or {},
            },
        )

    async def get_messages(
        self, user_id: str, session_id: str, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Mensagens em ordem cronológica (as `limit` mais recentes)."""
        messages = await self.store.select(
            Collection.CHAT_MESSAGES,
            user_id,
            filters={"session_id": session_id},
            order_by="created_at",
            descending=False,
        )
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages
