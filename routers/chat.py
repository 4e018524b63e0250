"""Chat endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

import app_state
from agents.chat_agent import ChatAgent, ChatRequest, ContextItem, validate_message
from agents.chat_store import ChatStore
from core.logger import get_logger
from utils.validators import validate_record_id

router = APIRouter(prefix="/chat", tags=["Chat"])
logger = get_logger("chat")


class ContextItemBody(BaseModel):
    """Arquivo ou nota anexada à conversa."""

    name: str = Field(..., description="Título do arquivo/nota")
    content: Optional[str] = Field(default=None, description="Conteúdo (resumido no prompt)")
    id: Optional[str] = None
    kind: str = Field(default="file", description="file ou note")


class ChatStreamBody(BaseModel):
    message: str = Field(default="", description="Mensagem do usuário")
    session_id: Optional[str] = Field(default=None, description="Sessão existente (nova se vazio)")
    provider: Optional[str] = Field(default=None, description="openai, anthropic ou gemini")
    model: Optional[str] = None
    context: list[ContextItemBody] = Field(default_factory=list)
    system_prompt: Optional[str] = None


class RenameSessionBody(BaseModel):
    name: str = Field(..., description="Novo nome da sessão")


# =============================================================================
# STREAMING
# =============================================================================


@router.post("/stream")
async def chat_stream(
    body: ChatStreamBody,
    user_id: str = Depends(app_state.get_user_id),
    agent: ChatAgent = Depends(app_state.get_chat_agent),
):
    """Chat com streaming SSE.

    Eventos: chunk, complete, error e por fim [DONE]. Um novo envio do
    mesmo usuário cancela o stream anterior.
    """
    error = validate_message(body.message)
    if error:
        raise HTTPException(status_code=400, detail=error)
    if body.session_id:
        validate_record_id(body.session_id)

    request = ChatRequest(
        message=body.message,
        session_id=body.session_id,
        provider=body.provider,
        model=body.model,
        context=[ContextItem(**item.model_dump()) for item in body.context],
        system_prompt=body.system_prompt,
    )

    async def generate():
        async for chunk in agent.stream(user_id, request):
            yield chunk.to_sse()

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/cancel")
async def cancel_stream(user_id: str = Depends(app_state.get_user_id)):
    """Cancela o stream em andamento do usuário (resposta parcial descartada)."""
    cancelled = app_state.stream_registry.cancel(user_id)
    return {"success": True, "cancelled": cancelled}


# =============================================================================
# SESSÕES
# =============================================================================


@router.get("/sessions")
async def list_sessions(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(app_state.get_user_id),
    store: ChatStore = Depends(app_state.get_chat_store),
):
    """Sessões de chat, mais recentes primeiro."""
    sessions = await store.list_sessions(user_id, limit=limit)
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/sessions/{session_id}/messages")
async def get_session_messages(
    session_id: str,
    user_id: str = Depends(app_state.get_user_id),
    store: ChatStore = Depends(app_state.get_chat_store),
):
    """Mensagens da sessão em ordem cronológica."""
    validate_record_id(session_id)
    session = await store.get_session(user_id, session_id)
    messages = await store.get_messages(user_id, session_id)
    return {"session": session, "messages": messages, "count": len(messages)}


@router.patch("/sessions/{session_id}")
async def rename_session(
    session_id: str,
    body: RenameSessionBody,
    user_id: str = Depends(app_state.get_user_id),
    store: ChatStore = Depends(app_state.get_chat_store),
):
    validate_record_id(session_id)
    session = await store.rename_session(user_id, session_id, body.name)
    logger.info("Sessão renomeada", session_id=session_id)
    return {"success": True, "session": session}


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    user_id: str = Depends(app_state.get_user_id),
    store: ChatStore = Depends(app_state.get_chat_store),
):
    """Remove a sessão e todas as suas mensagens."""
    validate_record_id(session_id)
    removed = await store.delete_session(user_id, session_id)
    return {"success": True, "session_id": session_id, "messages_deleted": removed}
