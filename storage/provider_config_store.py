"""Provider Config Store - Configurações de provedores de IA por usuário."""

from __future__ import annotations

from typing import Any

from core.config import StudyConfig, get_config
from core.logger import get_logger
from providers.base import AIProviderName, BaseAIProvider, ProviderConfig
from providers.factory import AIProviderFactory

from .preferences_store import PreferencesStore
from .record_store import Collection, RecordStore

logger = get_logger("provider_configs")


class ProviderConfigStore:
    """Persiste ProviderConfig por usuário e resolve o provedor efetivo.

    Chaves: ai_service_configs:{user_id}:{provider}. A API key nunca sai
    daqui sem máscara.

    Ordem de resolução:
        1. provedor/modelo explícitos da requisição
        2. preferência do usuário (prefs:{user_id}:ai_provider)
        3. DEFAULT_AI_PROVIDER
    A chave vem da config ativa do usuário ou, na falta, do ambiente.
    """

    def __init__(
        self,
        store: RecordStore,
        preferences: PreferencesStore | None = None,
        settings: StudyConfig | None = None,
    ):
        self.store = store
        self.preferences = preferences
        self.settings = settings

    @property
    def _settings(self) -> StudyConfig:
        return self.settings or get_config()

    async def save(self, user_id: str, config: ProviderConfig) -> dict[str, Any]:
        """Cria ou atualiza a config do provedor. Retorna versão mascarada."""
        data = config.model_dump(mode="json")
        await self.store.upsert(Collection.SERVICE_CONFIGS, user_id, config.provider.value, data)
        logger.info("Config de provedor salva", user_id=user_id, provider=config.provider.value)
        return config.public_dict()

    async def get(self, user_id: str, provider: AIProviderName | str) -> ProviderConfig | None:
        name = AIProviderFactory.parse_name(provider.value if isinstance(provider, AIProviderName) else provider)
        record = await self.store.get(Collection.SERVICE_CONFIGS, user_id, name.value)
        if record is None:
            return None
        return ProviderConfig(
            provider=name,
            api_key=record.get("api_key"),
            model=record.get("model"),
            temperature=record.get("temperature", 0.7),
            max_tokens=record.get("max_tokens", 4000),
            is_active=record.get("is_active", True),
        )

    async def list_public(self, user_id: str) -> list[dict[str, Any]]:
        """Configs do usuário com a chave mascarada."""
        records = await self.store.select(Collection.SERVICE_CONFIGS, user_id, order_by="provider", descending=False)
        configs = []
        for record in records:
            config = await self.get(user_id, record["provider"])
            if config is not None:
                configs.append({**config.public_dict(), "updated_at": record.get("updated_at")})
        return configs

    async def delete(self, user_id: str, provider: str) -> bool:
        name = AIProviderFactory.parse_name(provider)
        return await self.store.delete(Collection.SERVICE_CONFIGS, user_id, name.value)

    async def resolve(
        self,
        user_id: str,
        provider: str | None = None,
        model: str | None = None,
    ) -> BaseAIProvider:
        """Instancia o provedor efetivo para o usuário.

        Raises:
            AIError: Provedor desconhecido (INVALID_REQUEST)
        """
        settings = self._settings
        if provider is None and self.preferences is not None:
            preference = await self.preferences.get_provider(user_id)
            if preference is not None:
                provider = preference.provider.value
                model = model or preference.model

        name = AIProviderFactory.parse_name(provider or settings.default_provider)
        saved = await self.get(user_id, name)

        if saved is not None and saved.is_active and saved.api_key:
            config = saved.model_copy(update={"model": model or saved.model})
        else:
            config = ProviderConfig(
                provider=name, api_key=settings.api_key_for(name.value), model=model
            )

        logger.debug("Provedor resolvido", user_id=user_id, provider=name.value, model=config.resolved_model)
        return AIProviderFactory.create(config, timeout=settings.ai_request_timeout)
