"""Estado compartilhado da aplicação - AgentFS e serviços singleton."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import Header

from agents.chat_agent import ChatAgent, ChatStreamRegistry
from agents.chat_store import ChatStore
from agents.usage_tracker import UsageTracker, set_usage_tracker
from core.config import get_config
from core.logger import get_logger, set_user_id
from history import HistoryPreferenceService, HistoryService
from providers.base import BaseAIProvider
from quiz.storage import QuizStore
from storage import PreferencesStore, ProviderConfigStore, RecordStore
from utils.validators import validate_user_id

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

logger = get_logger("app_state")

ANONYMOUS_USER = "anonymous"

# Instâncias globais
agentfs: Optional[AgentFS] = None
usage_tracker: Optional[UsageTracker] = None
history_preferences: Optional[HistoryPreferenceService] = None
stream_registry = ChatStreamRegistry()


# =============================================================================
# AGENTFS
# =============================================================================


async def get_agentfs() -> AgentFS:
    """Abre (uma vez) o AgentFS configurado em AGENTFS_ID."""
    global agentfs
    if agentfs is None:
        from agentfs_sdk import AgentFS, AgentFSOptions

        agentfs_id = get_config().agentfs_id
        agentfs = await AgentFS.open(AgentFSOptions(id=agentfs_id))
        logger.info("AgentFS aberto", agentfs_id=agentfs_id)
    return agentfs


def set_agentfs(instance: Optional[AgentFS]) -> None:
    """Substitui o AgentFS e descarta serviços derivados dele."""
    global agentfs, usage_tracker, history_preferences
    agentfs = instance
    usage_tracker = None
    history_preferences = None
    set_usage_tracker(None)


# =============================================================================
# SERVIÇOS (dependências FastAPI)
# =============================================================================


async def get_record_store() -> RecordStore:
    return RecordStore(await get_agentfs())


async def get_quiz_store() -> QuizStore:
    return QuizStore(await get_agentfs())


async def get_preferences_store() -> PreferencesStore:
    return PreferencesStore(await get_agentfs())


async def get_provider_configs() -> ProviderConfigStore:
    fs = await get_agentfs()
    return ProviderConfigStore(RecordStore(fs), preferences=PreferencesStore(fs))


async def get_history_preferences() -> HistoryPreferenceService:
    """Serviço de preferências de histórico (cache compartilhado)."""
    global history_preferences
    if history_preferences is None:
        history_preferences = HistoryPreferenceService(await get_record_store())
    return history_preferences


async def get_history_service() -> HistoryService:
    return HistoryService(await get_record_store())


async def get_chat_store() -> ChatStore:
    return ChatStore(await get_record_store())


async def get_usage_tracker() -> UsageTracker:
    """Tracker de uso persistindo em ai_usage_tracking."""
    global usage_tracker
    if usage_tracker is None:
        usage_tracker = UsageTracker(await get_record_store())
        set_usage_tracker(usage_tracker)
    return usage_tracker


async def resolve_provider(
    user_id: str, provider: Optional[str] = None, model: Optional[str] = None
) -> BaseAIProvider:
    """Provedor efetivo para o usuário (requisição > preferência > padrão)."""
    configs = await get_provider_configs()
    return await configs.resolve(user_id, provider, model)


async def get_chat_agent() -> ChatAgent:
    return ChatAgent(
        chat_store=await get_chat_store(),
        resolve_provider=resolve_provider,
        preferences=await get_history_preferences(),
        registry=stream_registry,
        usage_tracker=await get_usage_tracker(),
    )


async def get_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """Identifica o usuário pelo header X-User-Id."""
    user_id = (x_user_id or "").strip() or ANONYMOUS_USER
    validate_user_id(user_id)
    set_user_id(user_id)
    return user_id


# =============================================================================
# CICLO DE VIDA
# =============================================================================


async def cleanup():
    """Libera recursos no shutdown: descarrega uso pendente e fecha AgentFS."""
    global agentfs, usage_tracker, history_preferences
    if usage_tracker is not None:
        try:
            flushed = await usage_tracker.flush()
            logger.info("Uso pendente gravado", records=flushed)
        except Exception as e:
            logger.warning("Erro ao gravar uso pendente", error=str(e))
    if agentfs is not None:
        try:
            await agentfs.close()
            logger.info("AgentFS fechado")
        except Exception as e:
            logger.warning("Erro ao fechar AgentFS", error=str(e))
    agentfs = None
    usage_tracker = None
    history_preferences = None
    set_usage_tracker(None)
