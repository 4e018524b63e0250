"""ChatAgent - Assistente de estudos com streaming SSE e cancelamento.

Este módulo encapsula toda a lógica de chat:
- Validação da mensagem
- Resolução/criação de sessão
- Streaming SSE (chunk, complete, error, [DONE])
- Cancelamento cooperativo por usuário
- Persistência de mensagens respeitando a preferência de histórico
- Registro de uso (tokens/custo)
"""

import asyncio
import json
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import AsyncGenerator

from core.config import get_config
from core.exceptions import AIError, StudyPlatformError
from core.logger import get_logger
from history.preferences import HistoryFeature, HistoryPreferenceService
from providers.base import BaseAIProvider

from .chat_store import ChatStore
from .usage_tracker import UsageTracker

logger = get_logger("chat_agent")

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI study assistant. Explain concepts clearly, "
    "use examples, and keep answers focused on the student's question."
)

CONTEXT_PREVIEW_LENGTH = 500

ProviderResolver = Callable[[str, str | None, str | None], Awaitable[BaseAIProvider]]


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class StreamChunk:
    """Evento de streaming."""

    type: str | None = None  # chunk, complete, error
    content: str | None = None
    session_id: str | None = None
    message_id: str | None = None
    error: str | None = None
    done: bool = False

    def to_sse(self) -> str:
        """Converte para formato SSE."""
        if self.done:
            return "data: [DONE]\n\n"

        data: dict = {"type": self.type}
        if self.content is not None:
            data["content"] = self.content
        if self.session_id is not None:
            data["session_id"] = self.session_id
        if self.message_id is not None:
            data["message_id"] = self.message_id
        if self.error is not None:
            data["error"] = self.error

        return f"data: {json.dumps(data)}\n\n"


@dataclass
class ContextItem:
    """Arquivo ou nota anexada como contexto."""

    name: str
    content: str | None = None
    id: str | None = None
    kind: str = "file"


@dataclass
class ChatRequest:
    """Request para chat."""

    message: str
    session_id: str | None = None
    provider: str | None = None
    model: str | None = None
    context: list[ContextItem] = field(default_factory=list)
    system_prompt: str | None = None


# =============================================================================
# Validação e prompt
# =============================================================================


def validate_message(message: object, max_length: int | None = None) -> str | None:
    """Retorna mensagem de erro ou None se válida."""
    max_length = max_length or get_config().chat_max_message_length
    if not message or not isinstance(message, str):
        return "Message is required"
    if not message.strip():
        return "Message cannot be empty"
    if len(message) > max_length:
        return f"Message is too long (max {max_length:,} characters)"
    return None


def build_system_prompt(base_prompt: str | None, context: list[ContextItem]) -> str:
    """Prompt de sistema com resumo do contexto (primeiros 500 caracteres)."""
    prompt = base_prompt or DEFAULT_SYSTEM_PROMPT
    if context:
        summary = "\n\n".join(
            f'{item.kind.capitalize()}: "{item.name}" - {(item.content or "")[:CONTEXT_PREVIEW_LENGTH]}...'
            for item in context
        )
        prompt += f"\n\nYou have access to the following files:\n{summary}"
    return prompt


def estimate_tokens(text: str) -> int:
    """Estimativa simples de tokens (aproximadamente 4 chars por token)."""
    return len(text) // 4


# =============================================================================
# Cancelamento
# =============================================================================


class StreamHandle:
    """Token de cancelamento de um stream em andamento."""

    def __init__(self, user_id: str):
        self.id = str(uuid.uuid4())
        self.user_id = user_id
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()


class ChatStreamRegistry:
    """Um stream ativo por usuário; um novo envio cancela o anterior."""

    def __init__(self):
        self._active: dict[str, StreamHandle] = {}

    def begin(self, user_id: str) -> StreamHandle:
        previous = self._active.get(user_id)
        if previous is not None:
            previous.cancel()
            logger.info("Stream anterior cancelado", user_id=user_id, stream_id=previous.id)
        handle = StreamHandle(user_id)
        self._active[user_id] = handle
        return handle

    def finish(self, handle: StreamHandle) -> None:
        if self._active.get(handle.user_id) is handle:
            del self._active[handle.user_id]

    def cancel(self, user_id: str) -> bool:
        handle = self._active.pop(user_id, None)
        if handle is None:
            return False
        handle.cancel()
        logger.info("Stream cancelado", user_id=user_id, stream_id=handle.id)
        return True

    def is_active(self, user_id: str) -> bool:
        return user_id in self._active


# =============================================================================
# ChatAgent - Main Class
# =============================================================================


class ChatAgent:
    """Agente de chat sobre os provedores de IA.

    Uso:
        agent = ChatAgent(chat_store, resolve_provider, preferences, registry)
        async for chunk in agent.stream(user_id, request):
            yield chunk.to_sse()

    Garantias:
        - Mensagem do usuário persistida antes do streaming
        - Resposta do assistente persistida só após o stream completar
          e só se o histórico de chat estiver habilitado
        - Stream cancelado nunca persiste resposta parcial
    """

    def __init__(
        self,
        chat_store: ChatStore,
        resolve_provider: ProviderResolver,
        preferences: HistoryPreferenceService | None = None,
        registry: ChatStreamRegistry | None = None,
        usage_tracker: UsageTracker | None = None,
        history_limit: int | None = None,
    ):
        self.chat_store = chat_store
        self.resolve_provider = resolve_provider
        self.preferences = preferences
        self.registry = registry or ChatStreamRegistry()
        self.usage_tracker = usage_tracker
        self.history_limit = history_limit if history_limit is not None else get_config().chat_history_limit

    async def stream(self, user_id: str, request: ChatRequest) -> AsyncGenerator[StreamChunk, None]:
        """Processa mensagem e retorna stream de chunks.

        Args:
            user_id: Usuário dono da sessão
            request: ChatRequest com mensagem e contexto

        Yields:
            StreamChunk de conteúdo, conclusão ou erro, e por fim done
        """
        error = validate_message(request.message)
        if error:
            yield StreamChunk(type="error", error=error)
            yield StreamChunk(done=True)
            return

        handle = self.registry.begin(user_id)
        try:
            async for chunk in self._process_chat(user_id, request, handle):
                yield chunk
        except StudyPlatformError as e:
            logger.warning("Erro no chat", user_id=user_id, error=e.message)
            yield StreamChunk(type="error", error=e.message)
        except Exception as e:
            logger.error("Erro no ChatAgent.stream", user_id=user_id, error=str(e))
            yield StreamChunk(type="error", error=str(e))
        finally:
            self.registry.finish(handle)

        yield StreamChunk(done=True)

    async def _resolve_session(self, user_id: str, request: ChatRequest) -> dict:
        if request.session_id:
            return await self.chat_store.get_session(user_id, request.session_id)

        first = request.context[0] if request.context else None
        return await self.chat_store.create_session(
            user_id,
            context_type=first.kind if first else None,
            context_id=first.id if first else None,
        )

    async def _process_chat(
        self, user_id: str, request: ChatRequest, handle: StreamHandle
    ) -> AsyncGenerator[StreamChunk, None]:
        """Processa chat normal com streaming."""
        session = await self._resolve_session(user_id, request)
        session_id = session["id"]

        history = await self.chat_store.get_messages(user_id, session_id, limit=self.history_limit)
        messages = [
            {"role": m["role"], "content": m["content"]}
            for m in history
            if m.get("role") in ("user", "assistant")
        ]
        messages.append({"role": "user", "content": request.message})

        await self.chat_store.add_message(user_id, session_id, "user", request.message)
        await self.chat_store.bump_session(user_id, session_id)

        provider = await self.resolve_provider(user_id, request.provider, request.model)
        system_prompt = build_system_prompt(request.system_prompt, request.context)

        parts: list[str] = []
        try:
            async for delta in provider.stream(messages, system_prompt=system_prompt):
                if handle.cancelled:
                    break
                parts.append(delta)
                yield StreamChunk(type="chunk", content=delta, session_id=session_id)
        except AIError as e:
            await self._track(user_id, provider, request.message, "", success=False, error=e.message)
            raise

        full_response = "".join(parts)

        if handle.cancelled:
            yield self._discard(user_id, session_id, full_response)
            return

        await self._track(user_id, provider, request.message, full_response)
        history_enabled = await self._history_enabled(user_id)

        # Cancelamento pode chegar durante o tracking ou a leitura da preferência
        if handle.cancelled:
            yield self._discard(user_id, session_id, full_response)
            return

        message_id = None
        if history_enabled:
            saved = await self.chat_store.add_message(
                user_id,
                session_id,
                "assistant",
                full_response,
                metadata={"provider": provider.name.value, "model": provider.model},
            )
            message_id = saved["id"]
            await self.chat_store.bump_session(user_id, session_id)
        else:
            logger.debug("Histórico de chat desabilitado; resposta não salva", user_id=user_id)

        yield StreamChunk(type="complete", session_id=session_id, message_id=message_id)

    @staticmethod
    def _discard(user_id: str, session_id: str, partial: str) -> StreamChunk:
        logger.info(
            "Stream cancelado antes de completar; resposta descartada",
            user_id=user_id,
            session_id=session_id,
            partial_length=len(partial),
        )
        return StreamChunk(type="error", error="cancelled", session_id=session_id)

    async def _history_enabled(self, user_id: str) -> bool:
        if self.preferences is None:
            return True
        return await self.preferences.is_enabled(user_id, HistoryFeature.CHAT)

    async def _track(
        self,
        user_id: str,
        provider: BaseAIProvider,
        prompt: str,
        response: str,
        success: bool = True,
        error: str | None = None,
    ) -> None:
        if self.usage_tracker is None:
            return
        await self.usage_tracker.track(
            user_id=user_id,
            provider=provider.name.value,
            model=provider.model,
            operation="chat",
            input_tokens=estimate_tokens(prompt),
            output_tokens=estimate_tokens(response),
            success=success,
            error=error,
        )
