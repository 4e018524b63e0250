"""Logger estruturado - wrapper sobre logging da stdlib.

Aceita contexto como kwargs e adiciona request_id/user_id do contexto
assíncrono em cada registro:

    logger = get_logger("quiz")
    logger.info("Quiz gerado", quiz_id="abc", count=5)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_user_id: ContextVar[str | None] = ContextVar("user_id", default=None)

_configured = False


def set_request_id(request_id: str | None) -> None:
    """Define request_id para os logs do contexto atual."""
    _request_id.set(request_id)


def set_user_id(user_id: str | None) -> None:
    """Define user_id para os logs do contexto atual."""
    _user_id.set(user_id)


class JSONFormatter(logging.Formatter):
    """Formata registros como uma linha JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = _request_id.get()
        if request_id:
            data["request_id"] = request_id
        user_id = _user_id.get()
        if user_id:
            data["user_id"] = user_id

        extra = getattr(record, "context", None)
        if extra:
            data.update(extra)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Formato legível: [nivel] nome: mensagem k=v."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"[{record.levelname}] {record.name}: {record.getMessage()}"
        extra = getattr(record, "context", None)
        if extra:
            pairs = " ".join(f"{k}={v}" for k, v in extra.items())
            base = f"{base} {pairs}"
        if record.exc_info:
            base = f"{base}\n{self.formatException(record.exc_info)}"
        return base


class StructuredLogger:
    """Logger que aceita contexto via kwargs."""

    def __init__(self, name: str):
        self._logger = logging.getLogger(f"study.{name}")

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, exc_info: bool = False, **context: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, **context)

    def exception(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **context)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configura o handler raiz do namespace 'study'.

    Args:
        level: Nível (DEBUG, INFO, ...). Padrão: LOG_LEVEL ou INFO
        fmt: 'json' ou 'text'. Padrão: LOG_FORMAT ou json
    """
    global _configured

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).lower()

    root = logging.getLogger("study")
    root.setLevel(getattr(logging, level, logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(TextFormatter() if fmt == "text" else JSONFormatter())
    root.addHandler(handler)
    root.propagate = False

    _configured = True


def get_logger(name: str) -> StructuredLogger:
    """Retorna logger estruturado para o módulo."""
    if not _configured:
        configure_logging()
    return StructuredLogger(name)
