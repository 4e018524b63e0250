"""Exceções da plataforma de estudos.

Todas herdam de StudyPlatformError, que carrega message/details e um
status HTTP. O handler em server.py converte para JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class StudyPlatformError(Exception):
    """Erro base com mensagem e detalhes estruturados."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# VALIDAÇÃO
# =============================================================================


class ValidationError(StudyPlatformError):
    """Dados não passaram nas regras de validação."""

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if errors:
            details["errors"] = errors
        super().__init__(message, details)
        self.errors = errors or []


class InvalidInputError(ValidationError):
    """Entrada do usuário inválida (mensagem vazia, id malformado...)."""

    error_code = "INVALID_INPUT"


class NotFoundError(StudyPlatformError):
    """Registro não encontrado."""

    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(StudyPlatformError):
    """Registro já existe e não pode ser sobrescrito."""

    status_code = 409
    error_code = "CONFLICT"


# =============================================================================
# PROVEDORES DE IA
# =============================================================================


class AIErrorCode(str, Enum):
    """Códigos de erro de provedores de IA."""

    NO_API_KEY = "NO_API_KEY"
    RATE_LIMIT = "RATE_LIMIT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    INVALID_REQUEST = "INVALID_REQUEST"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    API_ERROR = "API_ERROR"


_AI_STATUS = {
    AIErrorCode.NO_API_KEY: 401,
    AIErrorCode.RATE_LIMIT: 429,
    AIErrorCode.QUOTA_EXCEEDED: 429,
    AIErrorCode.INVALID_REQUEST: 400,
    AIErrorCode.SERVICE_UNAVAILABLE: 503,
    AIErrorCode.API_ERROR: 502,
}

# Códigos que não adianta repetir
NON_RETRYABLE_CODES = {AIErrorCode.NO_API_KEY, AIErrorCode.INVALID_REQUEST}


class AIError(StudyPlatformError):
    """Falha ao chamar um provedor de IA."""

    def __init__(
        self,
        message: str,
        code: AIErrorCode = AIErrorCode.API_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.code = AIErrorCode(code)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return _AI_STATUS.get(self.code, 502)

    @property
    def error_code(self) -> str:  # type: ignore[override]
        return self.code.value

    @property
    def retryable(self) -> bool:
        return self.code not in NON_RETRYABLE_CODES

    @classmethod
    def from_http_status(
        cls, status: int, message: str, details: dict[str, Any] | None = None
    ) -> "AIError":
        """Classifica erro HTTP do provedor."""
        lowered = message.lower()
        if status == 401 or status == 403:
            return cls("Invalid or missing API key", AIErrorCode.NO_API_KEY, details)
        if status == 429:
            if "quota" in lowered or "billing" in lowered:
                return cls("API quota exceeded", AIErrorCode.QUOTA_EXCEEDED, details)
            return cls("Rate limit exceeded. Please try again later.", AIErrorCode.RATE_LIMIT, details)
        if status == 400:
            return cls(message or "Invalid request", AIErrorCode.INVALID_REQUEST, details)
        if status >= 500:
            return cls(
                "AI service temporarily unavailable", AIErrorCode.SERVICE_UNAVAILABLE, details
            )
        return cls(message or f"AI API error ({status})", AIErrorCode.API_ERROR, details)

    @classmethod
    def from_exception(cls, error: Exception) -> "AIError":
        """Converte exceção genérica em AIError pela mensagem."""
        if isinstance(error, AIError):
            return error

        message = str(error) or error.__class__.__name__
        lowered = message.lower()
        if "api key" in lowered or "api_key" in lowered or "unauthorized" in lowered:
            return cls("Invalid or missing API key", AIErrorCode.NO_API_KEY)
        if "quota" in lowered:
            return cls("API quota exceeded", AIErrorCode.QUOTA_EXCEEDED)
        if "rate limit" in lowered or "too many requests" in lowered:
            return cls("Rate limit exceeded. Please try again later.", AIErrorCode.RATE_LIMIT)
        return cls(message, AIErrorCode.API_ERROR)


# =============================================================================
# QUIZ
# =============================================================================


class QuizGenerationError(StudyPlatformError):
    """Geração não atingiu o mínimo de perguntas."""

    status_code = 422
    error_code = "QUIZ_GENERATION_FAILED"


class GenerationInProgressError(StudyPlatformError):
    """Já existe uma geração em andamento para o usuário."""

    status_code = 409
    error_code = "GENERATION_IN_PROGRESS"


# =============================================================================
# PERSISTÊNCIA
# =============================================================================


class StorageError(StudyPlatformError):
    """Falha ao ler/gravar no AgentFS."""

    status_code = 500
    error_code = "STORAGE_ERROR"
