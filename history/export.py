"""Exportação de histórico em JSON ou CSV."""

import csv
import io
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .filters import HistoryKind


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


# Colunas achatadas por categoria
CSV_COLUMNS: dict[HistoryKind, list[str]] = {
    HistoryKind.QUIZZES: [
        "id",
        "completed_at",
        "score",
        "correct_count",
        "total_questions",
        "fallback_count",
        "time_spent",
        "source_type",
        "source_title",
        "ai_service",
        "model_used",
    ],
    HistoryKind.CHATS: [
        "id",
        "session_name",
        "total_messages",
        "context_type",
        "created_at",
        "updated_at",
    ],
    HistoryKind.ENHANCEMENTS: [
        "id",
        "enhancement_type",
        "note_id",
        "file_id",
        "is_applied",
        "ai_service",
        "model_used",
        "created_at",
    ],
}


@dataclass
class ExportFile:
    """Arquivo pronto para download."""

    filename: str
    media_type: str
    content: str


def export_filename(kind: str, fmt: ExportFormat, today: datetime | None = None) -> str:
    day = (today or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"ai-history-{kind}-{day}.{fmt.value}"


def _flatten_row(record: dict[str, Any], kind: HistoryKind) -> dict[str, Any]:
    row = {}
    for column in CSV_COLUMNS[kind]:
        value = record.get(column)
        if column == "total_questions" and value is None and isinstance(record.get("questions"), list):
            value = len(record["questions"])
        if isinstance(value, (dict, list)):
            value = json.dumps(value, ensure_ascii=False)
        row[column] = "" if value is None else value
    return row


def _write_section(buffer: io.StringIO, kind: HistoryKind, records: list[dict[str, Any]]) -> None:
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS[kind], lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow(_flatten_row(record, kind))


def to_csv(data: dict[HistoryKind, list[dict[str, Any]]]) -> str:
    """CSV de uma categoria, ou seções "=== KIND ===" quando há várias."""
    buffer = io.StringIO()
    if len(data) == 1:
        kind, records = next(iter(data.items()))
        _write_section(buffer, kind, records)
        return buffer.getvalue()

    for kind, records in data.items():
        if not records:
            continue
        buffer.write(f"=== {kind.value.upper()} ===\n")
        _write_section(buffer, kind, records)
        buffer.write("\n")
    return buffer.getvalue()


def to_json(kind: str, data: dict[HistoryKind, list[dict[str, Any]]]) -> str:
    """JSON de uma categoria (lista) ou de todas (objeto com exported_at)."""
    if kind == "all":
        payload: Any = {"exported_at": datetime.now(timezone.utc).isoformat()}
        payload.update({k.value: v for k, v in data.items()})
    else:
        payload = data[HistoryKind(kind)]
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def build_export(
    kind: str, fmt: ExportFormat, data: dict[HistoryKind, list[dict[str, Any]]]
) -> ExportFile:
    if fmt == ExportFormat.CSV:
        return ExportFile(export_filename(kind, fmt), "text/csv", to_csv(data))
    return ExportFile(export_filename(kind, fmt), "application/json", to_json(kind, data))
