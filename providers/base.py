"""Base dos provedores de IA - contrato comum sobre httpx."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, Field

from core.exceptions import AIError, AIErrorCode
from core.logger import get_logger

logger = get_logger("providers")

T = TypeVar("T")


class AIProviderName(str, Enum):
    """Provedores suportados."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


DEFAULT_MODELS = {
    AIProviderName.OPENAI: "gpt-4o-mini",
    AIProviderName.ANTHROPIC: "claude-3-haiku-20240307",
    AIProviderName.GEMINI: "gemini-1.5-flash",
}

# USD por 1K tokens (entrada + saída)
COST_PER_1K_TOKENS = {
    AIProviderName.OPENAI: 0.00015,
    AIProviderName.GEMINI: 0.000075,
    AIProviderName.ANTHROPIC: 0.00025,
}
DEFAULT_COST_PER_1K = 0.0001


def estimate_cost(provider: str, total_tokens: int) -> float:
    """Custo estimado em USD."""
    try:
        rate = COST_PER_1K_TOKENS[AIProviderName(provider)]
    except ValueError:
        rate = DEFAULT_COST_PER_1K
    return (total_tokens / 1000) * rate


def mask_api_key(api_key: str | None) -> str | None:
    """Mascara chave para exibição (sk-...abcd)."""
    if not api_key:
        return None
    if len(api_key) <= 8:
        return "****"
    return f"{api_key[:3]}...{api_key[-4:]}"


# =============================================================================
# Models
# =============================================================================


class ProviderConfig(BaseModel):
    """Configuração de um provedor de IA."""

    provider: AIProviderName = Field(..., description="openai, anthropic ou gemini")
    api_key: str | None = Field(default=None, description="Chave da API")
    model: str | None = Field(default=None, description="Modelo (padrão por provedor)")
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4000, ge=1, le=32000)
    is_active: bool = True

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    def public_dict(self) -> dict[str, Any]:
        """Representação sem segredo."""
        data = self.model_dump(mode="json")
        data["api_key"] = mask_api_key(self.api_key)
        data["model"] = self.resolved_model
        return data


@dataclass
class AIResponse:
    """Resposta de uma chamada de geração."""

    content: str
    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def cost_usd(self) -> float:
        return estimate_cost(self.provider, self.total_tokens)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "provider": self.provider,
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "cost_usd": round(self.cost_usd, 6),
        }


# =============================================================================
# Base Provider
# =============================================================================


class BaseAIProvider(ABC):
    """Contrato comum: generate, chat, stream e validate_api_key.

    Subclasses implementam apenas a tradução de payload/resposta; HTTP,
    timeout e mapeamento de erros ficam aqui.
    """

    name: AIProviderName

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.timeout = timeout
        self._http_client = http_client

    @property
    def model(self) -> str:
        return self.config.resolved_model

    def _require_key(self) -> str:
        if not self.config.api_key:
            raise AIError(
                f"API key not configured for {self.name.value}",
                AIErrorCode.NO_API_KEY,
                {"provider": self.name.value},
            )
        return self.config.api_key

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    def _raise_for_response(self, response: httpx.Response) -> None:
        if response.status_code < 400:
            return
        try:
            body = response.json()
            error = body.get("error", body)
            message = error.get("message") if isinstance(error, dict) else str(error)
        except (ValueError, AttributeError):
            message = response.text[:300]
        logger.warning(
            "Provedor retornou erro HTTP",
            provider=self.name.value,
            status=response.status_code,
            error=message,
        )
        raise AIError.from_http_status(
            response.status_code,
            message or "",
            {"provider": self.name.value, "status": response.status_code},
        )

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=headers, params=params)
        except httpx.TimeoutException as e:
            raise AIError(
                "AI service request timed out", AIErrorCode.SERVICE_UNAVAILABLE, {"provider": self.name.value}
            ) from e
        except httpx.RequestError as e:
            raise AIError(
                f"AI service unreachable: {e}", AIErrorCode.SERVICE_UNAVAILABLE, {"provider": self.name.value}
            ) from e

        self._raise_for_response(response)
        try:
            return response.json()
        except ValueError as e:
            raise AIError("Invalid JSON from AI service", AIErrorCode.API_ERROR) from e

    async def _stream_lines(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Itera eventos SSE (linhas 'data: {...}') já decodificados."""
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", url, json=payload, headers=headers, params=params
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        self._raise_for_response(response)
                    async for line in response.aiter_lines():
                        if not line.startswith("data:"):
                            continue
                        data = line[len("data:"):].strip()
                        if not data or data == "[DONE]":
                            continue
                        try:
                            yield json.loads(data)
                        except json.JSONDecodeError:
                            logger.debug("Linha SSE ignorada", provider=self.name.value, line=data[:80])
        except httpx.TimeoutException as e:
            raise AIError(
                "AI service request timed out", AIErrorCode.SERVICE_UNAVAILABLE, {"provider": self.name.value}
            ) from e
        except httpx.RequestError as e:
            raise AIError(
                f"AI service unreachable: {e}", AIErrorCode.SERVICE_UNAVAILABLE, {"provider": self.name.value}
            ) from e

    # =========================================================================
    # Contrato público
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> AIResponse:
        """Gera uma resposta para um único prompt do usuário."""
        return await self.chat(
            [{"role": "user", "content": prompt}],
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    async def chat(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> AIResponse:
        """Gera resposta para uma conversa (role/content)."""
        self._require_key()
        response = await self._complete(
            messages,
            system_prompt,
            max_tokens or self.config.max_tokens,
            self.config.temperature if temperature is None else temperature,
        )
        if not response.content or not response.content.strip():
            raise AIError(
                "No content received from AI service",
                AIErrorCode.API_ERROR,
                {"provider": self.name.value, "model": response.model},
            )
        return response

    async def stream(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> AsyncIterator[str]:
        """Itera fragmentos de texto da resposta."""
        self._require_key()
        async for delta in self._stream(
            messages,
            system_prompt,
            max_tokens or self.config.max_tokens,
            self.config.temperature if temperature is None else temperature,
        ):
            if delta:
                yield delta

    async def validate_api_key(self) -> bool:
        """True se a chave é aceita pelo provedor.

        Erros de autenticação viram False; demais falhas propagam.
        """
        if not self.config.api_key:
            return False
        try:
            await self._check_key()
        except AIError as e:
            if e.code == AIErrorCode.NO_API_KEY:
                return False
            raise
        return True

    @abstractmethod
    async def _complete(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None,
        max_tokens: int,
        temperature: float,
    ) -> AIResponse: ...

    @abstractmethod
    def _stream(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None,
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]: ...

    @abstractmethod
    async def _check_key(self) -> None: ...


# =============================================================================
# Retry
# =============================================================================


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    operation_name: str = "ai_call",
) -> T:
    """Executa operação com backoff exponencial.

    Não repete erros de chave ou requisição inválida.
    """
    last_error: AIError | None = None
    for attempt in range(max_retries):
        try:
            return await operation()
        except AIError as e:
            last_error = e
            if not e.retryable or attempt == max_retries - 1:
                raise
            delay = base_delay * (2**attempt)
            logger.warning(
                "Falha em chamada de IA, tentando novamente",
                operation=operation_name,
                attempt=attempt + 1,
                delay=delay,
                code=e.code.value,
            )
            await asyncio.sleep(delay)

    # max_retries <= 0
    raise last_error or AIError(f"{operation_name} não executada", AIErrorCode.API_ERROR)
