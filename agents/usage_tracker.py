"""Usage tracking - Rastreamento de tokens e custo por usuário.

Este módulo fornece:
- Registro de cada chamada a provedor de IA (tokens, custo, sucesso)
- Fila em memória com flush em lote para o AgentFS
- Estatísticas por usuário (operação, provedor, uso diário)
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.config import get_config
from core.logger import get_logger
from providers.base import estimate_cost
from storage import Collection, RecordStore

logger = get_logger("usage_tracker")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class UsageRecord:
    """Uso de uma única chamada a provedor."""

    user_id: str
    provider: str
    model: str
    operation: str
    input_tokens: int = 0
    output_tokens: int = 0
    success: bool = True
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def cost_usd(self) -> float:
        return estimate_cost(self.provider, self.total_tokens)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "provider": self.provider,
            "model": self.model,
            "operation": self.operation,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "tokens_used": self.total_tokens,
            "cost_usd": round(self.cost_usd, 6),
            "success": self.success,
            "error": self.error,
            "created_at": self.timestamp.isoformat(),
        }


# =============================================================================
# Usage Tracker
# =============================================================================


class UsageTracker:
    """Fila de uso com persistência em lote no AgentFS.

    Sem store (testes ou AgentFS indisponível) os registros ficam só em memória.
    """

    def __init__(self, store: RecordStore | None = None, flush_size: int | None = None):
        self.store = store
        self.flush_size = flush_size or get_config().usage_flush_size
        self._queue: list[UsageRecord] = []
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def track(
        self,
        user_id: str,
        provider: str,
        model: str,
        operation: str,
        input_tokens: int = 0,
        output_tokens: int = 0,
        success: bool = True,
        error: str | None = None,
    ) -> UsageRecord:
        """Enfileira registro de uso; faz flush ao atingir flush_size."""
        record = UsageRecord(
            user_id=user_id,
            provider=provider,
            model=model,
            operation=operation,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            success=success,
            error=error,
        )
        self._queue.append(record)

        logger.debug(
            "Uso registrado",
            user_id=user_id,
            operation=operation,
            provider=provider,
            tokens=record.total_tokens,
            success=success,
        )

        if len(self._queue) >= self.flush_size:
            await self.flush()
        return record

    async def flush(self) -> int:
        """Persiste registros pendentes. Retorna quantidade gravada."""
        async with self._lock:
            if not self._queue or self.store is None:
                return 0

            batch, self._queue = self._queue, []
            written = 0
            for record in batch:
                try:
                    await self.store.insert(Collection.USAGE_TRACKING, record.user_id, record.to_dict())
                    written += 1
                except Exception as e:
                    logger.warning("Falha ao persistir uso", user_id=record.user_id, error=str(e))

            logger.info("Flush de uso concluído", written=written, batch=len(batch))
            return written

    async def get_stats(self, user_id: str, days: int = 30) -> dict:
        """Estatísticas de uso do usuário nos últimos `days` dias.

        Inclui registros persistidos e pendentes na fila.
        """
        since = datetime.now(timezone.utc) - timedelta(days=days)
        records: list[dict] = []

        if self.store is not None:
            since_iso = since.isoformat()
            records.extend(
                await self.store.select(
                    Collection.USAGE_TRACKING,
                    user_id,
                    where=lambda r: r.get("created_at", "") >= since_iso,
                )
            )
        records.extend(
            r.to_dict() for r in self._queue if r.user_id == user_id and r.timestamp >= since
        )

        by_operation: dict[str, int] = {}
        by_provider: dict[str, int] = {}
        daily: dict[str, int] = {}
        total_tokens = 0
        total_cost = 0.0
        errors = 0

        for record in records:
            total_tokens += record.get("tokens_used", 0)
            total_cost += record.get("cost_usd", 0.0)
            if not record.get("success", True):
                errors += 1
            op = record.get("operation", "unknown")
            by_operation[op] = by_operation.get(op, 0) + 1
            provider = record.get("provider", "unknown")
            by_provider[provider] = by_provider.get(provider, 0) + 1
            day = record.get("created_at", "")[:10]
            daily[day] = daily.get(day, 0) + record.get("tokens_used", 0)

        return {
            "days": days,
            "total_requests": len(records),
            "total_tokens": total_tokens,
            "total_cost_usd": round(total_cost, 6),
            "error_count": errors,
            "by_operation": by_operation,
            "by_provider": by_provider,
            "daily_usage": dict(sorted(daily.items())),
        }


# =============================================================================
# Singleton Instance
# =============================================================================

_usage_tracker: Optional[UsageTracker] = None


def get_usage_tracker() -> UsageTracker:
    """Retorna instância singleton do UsageTracker."""
    global _usage_tracker
    if _usage_tracker is None:
        _usage_tracker = UsageTracker()
    return _usage_tracker


def set_usage_tracker(tracker: UsageTracker | None) -> None:
    """Substitui o singleton (usado no lifespan e em testes)."""
    global _usage_tracker
    _usage_tracker = tracker
