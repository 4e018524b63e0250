"""AI Provider Factory - Criação centralizada de provedores."""

from __future__ import annotations

import httpx

from core.config import StudyConfig, get_config
from core.exceptions import AIError, AIErrorCode

from .anthropic_provider import AnthropicProvider
from .base import AIProviderName, BaseAIProvider, ProviderConfig
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider


class AIProviderFactory:
    """Factory para criar provedores a partir de configuração.

    Permite:
    - Provedor/modelo por requisição ou preferência do usuário
    - Chave explícita (config salva) ou do ambiente
    - Injeção de httpx.AsyncClient (testes)

    Example:
        >>> provider = AIProviderFactory.from_settings("openai")
        >>> response = await provider.generate("Explique fotossíntese")
    """

    PROVIDERS: dict[AIProviderName, type[BaseAIProvider]] = {
        AIProviderName.OPENAI: OpenAIProvider,
        AIProviderName.ANTHROPIC: AnthropicProvider,
        AIProviderName.GEMINI: GeminiProvider,
    }

    @classmethod
    def create(
        cls,
        config: ProviderConfig,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> BaseAIProvider:
        """Cria provedor a partir de ProviderConfig.

        Args:
            config: Configuração do provedor
            timeout: Timeout HTTP (padrão: AI_REQUEST_TIMEOUT)
            http_client: Cliente httpx compartilhado

        Returns:
            Instância do provedor
        """
        provider_cls = cls.PROVIDERS.get(config.provider)
        if provider_cls is None:
            raise AIError(
                f"Unsupported AI provider: {config.provider}", AIErrorCode.INVALID_REQUEST
            )
        return provider_cls(
            config,
            timeout=timeout or get_config().ai_request_timeout,
            http_client=http_client,
        )

    @classmethod
    def from_settings(
        cls,
        provider: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        settings: StudyConfig | None = None,
    ) -> BaseAIProvider:
        """Cria provedor usando chaves do ambiente quando não informadas.

        Args:
            provider: Nome do provedor (padrão: DEFAULT_AI_PROVIDER)
            model: Modelo (padrão do provedor se None)
            api_key: Chave explícita (sobrepõe ambiente)
            settings: StudyConfig (padrão: get_config())

        Returns:
            Instância do provedor
        """
        settings = settings or get_config()
        name = cls.parse_name(provider or settings.default_provider)
        config = ProviderConfig(
            provider=name,
            api_key=api_key or settings.api_key_for(name.value),
            model=model,
        )
        return cls.create(config, timeout=settings.ai_request_timeout)

    @staticmethod
    def parse_name(provider: str) -> AIProviderName:
        """Converte nome textual, levantando AIError se desconhecido."""
        try:
            return AIProviderName(provider.strip().lower())
        except ValueError as e:
            raise AIError(
                f"Unsupported AI provider: {provider}",
                AIErrorCode.INVALID_REQUEST,
                {"supported": [p.value for p in AIProviderName]},
            ) from e

    @staticmethod
    def available_providers(settings: StudyConfig | None = None) -> list[str]:
        """Provedores com chave configurada no ambiente."""
        settings = settings or get_config()
        return [p.value for p in AIProviderName if settings.api_key_for(p.value)]
