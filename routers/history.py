"""History endpoints - navegação, exportação, exclusão, limpeza e preferências."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

import app_state
from core.config import get_config
from core.logger import get_logger
from history import (
    ExportFormat,
    HistoryFeature,
    HistoryFilter,
    HistoryKind,
    HistoryPreferenceService,
    HistoryService,
)
from history.service import parse_kind
from utils.validators import validate_record_id

router = APIRouter(prefix="/history", tags=["History"])
logger = get_logger("history_router")

FEATURE_KINDS = {
    HistoryFeature.CHAT: HistoryKind.CHATS,
    HistoryFeature.QUIZ: HistoryKind.QUIZZES,
    HistoryFeature.ENHANCEMENT: HistoryKind.ENHANCEMENTS,
}


class CleanupRequest(BaseModel):
    days: Optional[int] = Field(
        default=None, ge=1, description="Remove registros mais antigos que N dias (padrão HISTORY_RETENTION_DAYS)"
    )


class PreferenceUpdate(BaseModel):
    feature_type: HistoryFeature
    is_enabled: Optional[bool] = None
    retention_days: Optional[int] = Field(default=None, ge=1, le=3650)
    storage_budget_mb: Optional[int] = Field(default=None, ge=1)
    auto_cleanup: Optional[bool] = None


# =============================================================================
# PREFERÊNCIAS
# =============================================================================


@router.get("/preferences")
async def get_preferences(
    user_id: str = Depends(app_state.get_user_id),
    preferences: HistoryPreferenceService = Depends(app_state.get_history_preferences),
):
    """Preferências de histórico de todas as funcionalidades."""
    return {"preferences": [p.to_dict() for p in await preferences.get_all(user_id)]}


@router.put("/preferences")
async def update_preference(
    body: PreferenceUpdate,
    user_id: str = Depends(app_state.get_user_id),
    preferences: HistoryPreferenceService = Depends(app_state.get_history_preferences),
):
    changes = body.model_dump(exclude={"feature_type"}, exclude_none=True)
    preference = await preferences.update(user_id, body.feature_type, **changes)
    return {"success": True, "preference": preference.to_dict()}


# =============================================================================
# EXPORTAÇÃO E LIMPEZA
# =============================================================================


@router.get("/export")
async def export_history(
    kind: str = Query(default="all", description="quizzes, chats, enhancements ou all"),
    format: ExportFormat = Query(default=ExportFormat.JSON),
    user_id: str = Depends(app_state.get_user_id),
    service: HistoryService = Depends(app_state.get_history_service),
):
    """Exporta histórico como arquivo para download."""
    export = await service.export(user_id, kind, format)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.post("/cleanup")
async def cleanup_history(
    body: CleanupRequest,
    user_id: str = Depends(app_state.get_user_id),
    service: HistoryService = Depends(app_state.get_history_service),
):
    """Remove histórico mais antigo que `days` dias em todas as categorias."""
    return await service.cleanup_old_history(user_id, body.days or get_config().history_retention_days)


@router.post("/cleanup/auto")
async def auto_cleanup_history(
    user_id: str = Depends(app_state.get_user_id),
    service: HistoryService = Depends(app_state.get_history_service),
    preferences: HistoryPreferenceService = Depends(app_state.get_history_preferences),
):
    """Aplica retention_days das funcionalidades com auto_cleanup ligado."""
    deleted = 0
    errors: list[str] = []
    applied: list[str] = []
    for preference in await preferences.get_all(user_id):
        if not preference.auto_cleanup:
            continue
        kind = FEATURE_KINDS[HistoryFeature(preference.feature_type)]
        result = await service.cleanup_kind(user_id, kind, preference.retention_days)
        deleted += result["deleted_count"]
        errors.extend(result["errors"])
        applied.append(kind.value)

    logger.info("Limpeza automática", user_id=user_id, kinds=applied, deleted=deleted)
    return {"success": not errors, "deleted_count": deleted, "errors": errors, "kinds": applied}


# =============================================================================
# NAVEGAÇÃO
# =============================================================================


@router.get("/{kind}")
async def list_history(
    kind: str,
    types: Optional[list[str]] = Query(default=None),
    statuses: Optional[list[str]] = Query(default=None),
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    user_id: str = Depends(app_state.get_user_id),
    service: HistoryService = Depends(app_state.get_history_service),
):
    """Registros de uma categoria com filtros opcionais."""
    history_kind = parse_kind(kind)
    criteria = HistoryFilter(
        types=types or [],
        statuses=statuses or [],
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    records = await service.list_records(user_id, history_kind, criteria, limit=limit)
    return {"kind": history_kind.value, "records": records, "count": len(records)}


@router.get("/chats/{session_id}/messages")
async def get_chat_history_messages(
    session_id: str,
    user_id: str = Depends(app_state.get_user_id),
    service: HistoryService = Depends(app_state.get_history_service),
):
    validate_record_id(session_id)
    messages = await service.get_chat_messages(user_id, session_id)
    return {"session_id": session_id, "messages": messages, "count": len(messages)}


@router.delete("/{kind}/{record_id}")
async def delete_history_record(
    kind: str,
    record_id: str,
    user_id: str = Depends(app_state.get_user_id),
    service: HistoryService = Depends(app_state.get_history_service),
):
    """Exclusão definitiva (sessões de chat levam junto as mensagens)."""
    validate_record_id(record_id)
    await service.delete_record(user_id, kind, record_id)
    return {"success": True, "kind": kind, "record_id": record_id}
