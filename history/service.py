"""History service - Navegação, exportação, exclusão e limpeza do histórico de IA."""

from datetime import datetime, timedelta, timezone
from typing import Any

from core.exceptions import NotFoundError, ValidationError
from core.logger import get_logger
from storage import Collection, RecordStore

from .export import ExportFile, ExportFormat, build_export
from .filters import HistoryFilter, HistoryKind, apply_filters, parse_timestamp
from .normalizer import QuizDataNormalizer

logger = get_logger("history")

# Coleções de cada categoria (sessões legadas de quiz também entram)
KIND_COLLECTIONS: dict[HistoryKind, list[Collection]] = {
    HistoryKind.QUIZZES: [Collection.ADVANCED_QUIZ_SESSIONS, Collection.QUIZ_SESSIONS],
    HistoryKind.CHATS: [Collection.CHAT_SESSIONS],
    HistoryKind.ENHANCEMENTS: [Collection.NOTE_ENHANCEMENTS],
}

# Campo de data usado na limpeza por idade
CLEANUP_DATE_FIELD: dict[HistoryKind, str] = {
    HistoryKind.QUIZZES: "completed_at",
    HistoryKind.CHATS: "updated_at",
    HistoryKind.ENHANCEMENTS: "created_at",
}

EXPORT_KINDS = {k.value for k in HistoryKind} | {"all"}


def parse_kind(kind: str) -> HistoryKind:
    try:
        return HistoryKind(kind)
    except ValueError as e:
        raise ValidationError(
            f"Unknown history kind: {kind}",
            errors=[f"kind must be one of {', '.join(k.value for k in HistoryKind)}"],
        ) from e


def _is_completed_quiz(record: dict[str, Any]) -> bool:
    return record.get("completed", True) is not False and record.get("completed_at") is not None


class HistoryService:
    """Operações de histórico por usuário sobre o RecordStore.

    Example:
        >>> service = HistoryService(RecordStore(agentfs))
        >>> quizzes = await service.list_records("user-1", HistoryKind.QUIZZES)
        >>> export = await service.export("user-1", "all", ExportFormat.JSON)
    """

    def __init__(self, store: RecordStore):
        self.store = store

    # =========================================================================
    # Navegação
    # =========================================================================

    async def _records(self, user_id: str, kind: HistoryKind) -> list[dict[str, Any]]:
        date_field = CLEANUP_DATE_FIELD[kind]
        records: list[dict[str, Any]] = []
        for collection in KIND_COLLECTIONS[kind]:
            records.extend(await self.store.select(collection, user_id))
        if kind == HistoryKind.QUIZZES:
            records = [r for r in records if _is_completed_quiz(r)]
        records.sort(key=lambda r: r.get(date_field) or r.get("created_at") or "", reverse=True)
        return records

    async def list_records(
        self,
        user_id: str,
        kind: HistoryKind | str,
        criteria: HistoryFilter | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Registros da categoria, mais recentes primeiro, filtrados.

        Quizzes recebem o campo "normalized" com questões/respostas uniformes.
        """
        kind = parse_kind(kind) if isinstance(kind, str) else kind
        records = apply_filters(await self._records(user_id, kind), kind, criteria or HistoryFilter())
        if limit is not None:
            records = records[:limit]

        if kind == HistoryKind.QUIZZES:
            records = [{**r, "normalized": QuizDataNormalizer.normalize_record(r)} for r in records]
        return records

    async def get_chat_messages(self, user_id: str, session_id: str) -> list[dict[str, Any]]:
        return await self.store.select(
            Collection.CHAT_MESSAGES,
            user_id,
            filters={"session_id": session_id},
            order_by="created_at",
            descending=False,
        )

    # =========================================================================
    # Exclusão
    # =========================================================================

    async def _delete_chat_messages(self, user_id: str, session_id: str) -> int:
        return await self.store.delete_where(
            Collection.CHAT_MESSAGES, user_id, lambda r: r.get("session_id") == session_id
        )

    async def delete_record(self, user_id: str, kind: HistoryKind | str, record_id: str) -> None:
        """Hard delete; sessões de chat levam junto suas mensagens.

        Raises:
            NotFoundError: Registro inexistente
        """
        kind = parse_kind(kind) if isinstance(kind, str) else kind
        for collection in KIND_COLLECTIONS[kind]:
            if await self.store.delete(collection, user_id, record_id):
                if kind == HistoryKind.CHATS:
                    removed = await self._delete_chat_messages(user_id, record_id)
                    logger.debug("Mensagens removidas", session_id=record_id, count=removed)
                logger.info("Registro de histórico removido", kind=kind.value, record_id=record_id)
                return
        raise NotFoundError(
            f"{kind.value} record {record_id} not found", {"kind": kind.value, "record_id": record_id}
        )

    # =========================================================================
    # Exportação
    # =========================================================================

    async def export(
        self, user_id: str, kind: str, fmt: ExportFormat | str = ExportFormat.JSON
    ) -> ExportFile:
        """Exporta uma categoria ou todas ("all")."""
        if kind not in EXPORT_KINDS:
            raise ValidationError(
                f"Unknown export kind: {kind}",
                errors=[f"kind must be one of {', '.join(sorted(EXPORT_KINDS))}"],
            )
        fmt = ExportFormat(fmt)
        kinds = list(HistoryKind) if kind == "all" else [HistoryKind(kind)]

        data: dict[HistoryKind, list[dict[str, Any]]] = {}
        for item in kinds:
            try:
                data[item] = await self._records(user_id, item)
            except Exception as e:
                logger.warning("Categoria indisponível na exportação", kind=item.value, error=str(e))
                data[item] = []

        export = build_export(kind, fmt, data)
        logger.info(
            "Histórico exportado",
            user_id=user_id,
            kind=kind,
            format=fmt.value,
            records=sum(len(v) for v in data.values()),
        )
        return export

    # =========================================================================
    # Limpeza
    # =========================================================================

    async def cleanup_kind(self, user_id: str, kind: HistoryKind, days: int = 30) -> dict[str, Any]:
        """Remove registros da categoria mais antigos que `days` dias."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        date_field = CLEANUP_DATE_FIELD[kind]
        errors: list[str] = []
        deleted = 0

        def is_old(record: dict[str, Any]) -> bool:
            moment = parse_timestamp(record.get(date_field))
            return moment is not None and moment < cutoff

        for collection in KIND_COLLECTIONS[kind]:
            try:
                old = await self.store.select(collection, user_id, where=is_old)
                for record in old:
                    await self.store.delete(collection, user_id, record["id"])
                    if kind == HistoryKind.CHATS:
                        await self._delete_chat_messages(user_id, record["id"])
                    deleted += 1
            except Exception as e:
                errors.append(f"Failed to clean {collection.value}: {e}")

        return {"success": not errors, "deleted_count": deleted, "errors": errors}

    async def cleanup_old_history(self, user_id: str, days: int = 30) -> dict[str, Any]:
        """Limpeza de todas as categorias.

        Returns:
            {"success", "deleted_count", "errors"}
        """
        if days < 1:
            raise ValidationError("days must be at least 1", errors=["days must be at least 1"])

        total = 0
        errors: list[str] = []
        for kind in HistoryKind:
            result = await self.cleanup_kind(user_id, kind, days)
            total += result["deleted_count"]
            errors.extend(result["errors"])

        logger.info("Limpeza de histórico", user_id=user_id, days=days, deleted=total, errors=len(errors))
        return {"success": not errors, "deleted_count": total, "errors": errors}
