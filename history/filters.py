"""Filtros de histórico (tipo, status, período e busca textual)."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class HistoryKind(str, Enum):
    """Categorias de histórico navegáveis."""

    QUIZZES = "quizzes"
    CHATS = "chats"
    ENHANCEMENTS = "enhancements"


@dataclass
class HistoryFilter:
    """Critérios de filtragem; campos vazios não filtram."""

    types: list[str] = field(default_factory=list)
    statuses: list[str] = field(default_factory=list)
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.types or self.statuses or self.date_from or self.date_to or self.search)


@dataclass(frozen=True)
class _Accessors:
    item_type: Callable[[dict], str]
    status: Callable[[dict], str]
    date: Callable[[dict], str | None]
    text: Callable[[dict], str]


ACCESSORS: dict[HistoryKind, _Accessors] = {
    HistoryKind.QUIZZES: _Accessors(
        item_type=lambda r: "quiz",
        status=lambda r: "completed",
        date=lambda r: r.get("completed_at") or r.get("created_at"),
        text=lambda r: f"{r.get('quiz_type') or r.get('source_title') or ''} {r.get('ai_service') or ''}",
    ),
    HistoryKind.CHATS: _Accessors(
        item_type=lambda r: "chat",
        status=lambda r: "active",
        date=lambda r: r.get("updated_at") or r.get("created_at"),
        text=lambda r: r.get("session_name") or "Untitled Session",
    ),
    HistoryKind.ENHANCEMENTS: _Accessors(
        item_type=lambda r: "file_enhancement" if r.get("file_id") else "enhancement",
        status=lambda r: "applied" if r.get("is_applied") else "pending",
        date=lambda r: r.get("created_at"),
        text=lambda r: f"{r.get('enhancement_type') or ''} {r.get('ai_service') or ''}",
    ),
}


def parse_timestamp(value: Any) -> datetime | None:
    """ISO 8601 -> datetime com fuso (UTC se ausente); None se inválido."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def matches(record: dict, kind: HistoryKind, criteria: HistoryFilter) -> bool:
    """True se o registro passa em todos os critérios."""
    access = ACCESSORS[kind]

    if criteria.types and access.item_type(record) not in criteria.types:
        return False

    if criteria.statuses and access.status(record) not in criteria.statuses:
        return False

    if criteria.date_from or criteria.date_to:
        moment = parse_timestamp(access.date(record))
        if moment is None:
            return False
        if criteria.date_from and moment < parse_timestamp(criteria.date_from):
            return False
        if criteria.date_to and moment > parse_timestamp(criteria.date_to):
            return False

    if criteria.search:
        if criteria.search.lower() not in access.text(record).lower():
            return False

    return True


def apply_filters(records: list[dict], kind: HistoryKind, criteria: HistoryFilter) -> list[dict]:
    if criteria.is_empty:
        return records
    return [r for r in records if matches(r, kind, criteria)]
