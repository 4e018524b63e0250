"""Configuração centralizada via variáveis de ambiente."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field

from .logger import get_logger

logger = get_logger("config")

VALID_PROVIDERS = ("openai", "anthropic", "gemini")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Valor inteiro inválido, usando padrão", var=name, value=raw, default=default)
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Valor decimal inválido, usando padrão", var=name, value=raw, default=default)
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class StudyConfig:
    """Configuração da plataforma de estudos.

    Todos os valores vêm do ambiente (ver from_env); valores numéricos
    inválidos caem no padrão.
    """

    # Provedores de IA
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    gemini_api_key: str | None = None
    default_provider: str = "openai"
    ai_request_timeout: float = 60.0

    # Quiz
    quiz_max_attempts: int = 3
    quiz_content_limit: int = 5000
    quiz_min_success_ratio: float = 0.5
    image_generation_enabled: bool = True
    image_model: str = "dall-e-3"

    # Chat
    chat_max_message_length: int = 10000
    chat_history_limit: int = 20

    # Histórico / uso
    history_retention_days: int = 30
    usage_flush_size: int = 10

    # Infra
    agentfs_id: str = "study-platform"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    @classmethod
    def from_env(cls) -> "StudyConfig":
        """Cria configuração a partir das variáveis de ambiente."""
        provider = os.getenv("DEFAULT_AI_PROVIDER", "openai").strip().lower()
        if provider not in VALID_PROVIDERS:
            logger.warning("Provedor padrão inválido, usando openai", provider=provider)
            provider = "openai"

        origins_raw = os.getenv("CORS_ORIGINS", "")
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

        ratio = _get_float("QUIZ_MIN_SUCCESS_RATIO", 0.5)
        if not 0 < ratio <= 1:
            ratio = 0.5

        config = cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            default_provider=provider,
            ai_request_timeout=_get_float("AI_REQUEST_TIMEOUT", 60.0),
            quiz_max_attempts=max(1, _get_int("QUIZ_MAX_ATTEMPTS", 3)),
            quiz_content_limit=_get_int("QUIZ_CONTENT_LIMIT", 5000),
            quiz_min_success_ratio=ratio,
            image_generation_enabled=_get_bool("IMAGE_GENERATION_ENABLED", True),
            image_model=os.getenv("IMAGE_MODEL", "dall-e-3"),
            chat_max_message_length=_get_int("CHAT_MAX_MESSAGE_LENGTH", 10000),
            chat_history_limit=_get_int("CHAT_HISTORY_LIMIT", 20),
            history_retention_days=_get_int("HISTORY_RETENTION_DAYS", 30),
            usage_flush_size=max(1, _get_int("USAGE_FLUSH_SIZE", 10)),
            agentfs_id=os.getenv("AGENTFS_ID", "study-platform"),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "json").lower(),
        )
        if origins:
            config.cors_origins = origins
        return config

    def api_key_for(self, provider: str) -> str | None:
        """Retorna a chave configurada para o provedor."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
        }.get(provider)

    def to_dict(self) -> dict:
        """Exporta configuração sem segredos."""
        data = asdict(self)
        for key in ("openai_api_key", "anthropic_api_key", "gemini_api_key"):
            data[key] = bool(data[key])
        return data


_config: StudyConfig | None = None


def get_config() -> StudyConfig:
    """Retorna configuração global (lazy)."""
    global _config
    if _config is None:
        _config = StudyConfig.from_env()
    return _config


def reload_config() -> StudyConfig:
    """Relê o ambiente e substitui a configuração global."""
    global _config
    _config = StudyConfig.from_env()
    return _config
