"""History preferences - Controle por funcionalidade de salvamento do histórico."""

import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from core.logger import get_logger
from storage import Collection, RecordStore

logger = get_logger("history_preferences")


class HistoryFeature(str, Enum):
    """Funcionalidades com histórico configurável."""

    CHAT = "chat"
    QUIZ = "quiz"
    ENHANCEMENT = "enhancement"


@dataclass
class HistoryPreference:
    """Preferência de histórico de uma funcionalidade."""

    feature_type: str
    is_enabled: bool = True
    retention_days: int = 90
    storage_budget_mb: int = 50
    auto_cleanup: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryPreference":
        return cls(
            feature_type=data["feature_type"],
            is_enabled=data.get("is_enabled", True),
            retention_days=data.get("retention_days", 90),
            storage_budget_mb=data.get("storage_budget_mb", 50),
            auto_cleanup=data.get("auto_cleanup", False),
        )


class HistoryPreferenceService:
    """Lê e grava preferências com cache de 5 minutos por (usuário, funcionalidade).

    Sem preferência salva, o histórico fica habilitado.
    """

    CACHE_TTL_SECONDS = 5 * 60

    def __init__(self, store: RecordStore):
        self.store = store
        self._cache: dict[tuple[str, str], tuple[float, HistoryPreference]] = {}

    async def get(self, user_id: str, feature: HistoryFeature | str) -> HistoryPreference:
        """Preferência atual (padrão se não houver registro)."""
        feature = HistoryFeature(feature).value
        cache_key = (user_id, feature)
        cached = self._cache.get(cache_key)
        if cached and cached[0] > time.monotonic():
            return cached[1]

        record = await self.store.get(Collection.HISTORY_PREFERENCES, user_id, feature)
        if record is None:
            return HistoryPreference(feature_type=feature)

        preference = HistoryPreference.from_dict(record)
        self._cache[cache_key] = (time.monotonic() + self.CACHE_TTL_SECONDS, preference)
        return preference

    async def is_enabled(self, user_id: str, feature: HistoryFeature | str) -> bool:
        """True se o histórico da funcionalidade deve ser salvo.

        Falhas de leitura mantêm o histórico habilitado.
        """
        if not user_id:
            logger.warning("is_enabled sem user_id", feature=str(feature))
            return False
        try:
            return (await self.get(user_id, feature)).is_enabled
        except Exception as e:
            logger.error("Erro ao verificar preferência", user_id=user_id, error=str(e))
            return True

    async def get_all(self, user_id: str) -> list[HistoryPreference]:
        """Preferências de todas as funcionalidades."""
        return [await self.get(user_id, feature) for feature in HistoryFeature]

    async def update(
        self, user_id: str, feature: HistoryFeature | str, **changes: Any
    ) -> HistoryPreference:
        """Atualiza campos da preferência (cria com padrões se não existir)."""
        current = await self.get(user_id, feature)
        data = current.to_dict()
        data.update({k: v for k, v in changes.items() if v is not None and k in data})
        data["feature_type"] = current.feature_type

        await self.store.upsert(Collection.HISTORY_PREFERENCES, user_id, current.feature_type, data)
        self.clear_user_cache(user_id)
        logger.info("Preferência de histórico atualizada", user_id=user_id, feature=current.feature_type)
        return HistoryPreference.from_dict(data)

    def clear_user_cache(self, user_id: str) -> None:
        for key in [k for k in self._cache if k[0] == user_id]:
            del self._cache[key]

    def clear_all_cache(self) -> None:
        self._cache.clear()
