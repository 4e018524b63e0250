"""Preferences Store - Estado do cliente persistido por usuário.

Estrutura de chaves:
    - prefs:{user_id}:favorite_quotes -> lista de citações favoritas
    - prefs:{user_id}:ai_provider -> {"provider", "model"}
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

from core.exceptions import ValidationError
from core.logger import get_logger
from providers.base import AIProviderName

logger = get_logger("preferences")


class FavoriteQuote(BaseModel):
    """Citação motivacional favoritada."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str = Field(..., min_length=1, description="Texto da citação")
    author: str | None = None
    category: str | None = None


class ProviderPreference(BaseModel):
    """Provedor de IA preferido do usuário."""

    provider: AIProviderName
    model: str | None = None


class PreferencesStore:
    """Abstração sobre AgentFS para preferências do cliente."""

    KEY_PREFIX = "prefs"
    MAX_FAVORITE_QUOTES = 200

    def __init__(self, agentfs: AgentFS):
        self.agentfs = agentfs

    def _key(self, user_id: str, name: str) -> str:
        return f"{self.KEY_PREFIX}:{user_id}:{name}"

    # =========================================================================
    # Citações favoritas
    # =========================================================================

    async def list_quotes(self, user_id: str) -> list[FavoriteQuote]:
        data = await self.agentfs.kv.get(self._key(user_id, "favorite_quotes")) or []
        return [FavoriteQuote(**item) for item in data if isinstance(item, dict)]

    async def add_quote(self, user_id: str, quote: FavoriteQuote) -> tuple[FavoriteQuote, bool]:
        """Adiciona citação; texto já existente não duplica.

        Returns:
            (citação armazenada, True se foi adicionada agora)
        """
        quotes = await self.list_quotes(user_id)
        normalized = quote.text.strip().lower()
        for existing in quotes:
            if existing.text.strip().lower() == normalized:
                return existing, False

        if len(quotes) >= self.MAX_FAVORITE_QUOTES:
            raise ValidationError(
                f"Maximum {self.MAX_FAVORITE_QUOTES} favorite quotes allowed",
                errors=["favorite quote limit reached"],
            )

        quotes.append(quote)
        await self._save_quotes(user_id, quotes)
        logger.debug("Citação favoritada", user_id=user_id, quote_id=quote.id)
        return quote, True

    async def remove_quote(self, user_id: str, quote_id: str) -> bool:
        quotes = await self.list_quotes(user_id)
        remaining = [q for q in quotes if q.id != quote_id]
        if len(remaining) == len(quotes):
            return False
        await self._save_quotes(user_id, remaining)
        return True

    async def clear_quotes(self, user_id: str) -> None:
        await self.agentfs.kv.delete(self._key(user_id, "favorite_quotes"))

    async def _save_quotes(self, user_id: str, quotes: list[FavoriteQuote]) -> None:
        await self.agentfs.kv.set(
            self._key(user_id, "favorite_quotes"), [q.model_dump() for q in quotes]
        )

    # =========================================================================
    # Provedor preferido
    # =========================================================================

    async def get_provider(self, user_id: str) -> ProviderPreference | None:
        data: dict[str, Any] | None = await self.agentfs.kv.get(self._key(user_id, "ai_provider"))
        if not data:
            return None
        try:
            return ProviderPreference(**data)
        except ValueError:
            logger.warning("Preferência de provedor inválida ignorada", user_id=user_id)
            return None

    async def set_provider(self, user_id: str, preference: ProviderPreference) -> ProviderPreference:
        await self.agentfs.kv.set(
            self._key(user_id, "ai_provider"), preference.model_dump(mode="json")
        )
        logger.info("Provedor preferido atualizado", user_id=user_id, provider=preference.provider.value)
        return preference
