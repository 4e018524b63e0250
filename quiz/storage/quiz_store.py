"""Quiz Store - Persistencia de sessoes concluidas e de quizzes em andamento."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

from storage import Collection, RecordStore

from ..models.schemas import QuizSession
from ..models.state import QuizProgress

logger = logging.getLogger(__name__)


class QuizStore:
    """Abstracao sobre AgentFS para sessoes de quiz.

    Sessoes concluidas vao para a colecao advanced_quiz_sessions e nunca
    sao alteradas depois de salvas (delete e hard delete).

    Estrutura de chaves:
        - advanced_quiz_sessions:{user_id}:{session_id} -> sessao (QuizSession)
        - prefs:{user_id}:quiz_progress:{quiz_id} -> snapshot retomavel (QuizProgress)

    Example:
        >>> store = QuizStore(agentfs)
        >>> await store.save_session(session)
        >>> history = await store.get_history("user-1", limit=10)
    """

    PROGRESS_PREFIX = "prefs"

    def __init__(self, agentfs: AgentFS):
        """Inicializa store com instancia do AgentFS.

        Args:
            agentfs: Instancia configurada do AgentFS
        """
        self.agentfs = agentfs
        self.records = RecordStore(agentfs)

    def _progress_key(self, user_id: str, quiz_id: str) -> str:
        return f"{self.PROGRESS_PREFIX}:{user_id}:quiz_progress:{quiz_id}"

    # =========================================================================
    # SESSOES
    # =========================================================================

    async def save_session(self, session: QuizSession) -> dict[str, Any]:
        """Persiste sessao concluida.

        Raises:
            ValueError: Respostas e questoes com tamanhos diferentes
            ConflictError: Sessao com o mesmo id ja salva
            StorageError: Falha de escrita no AgentFS
        """
        if len(session.answers) != len(session.questions):
            raise ValueError("Number of questions and answers must match")

        record = await self.records.insert(
            Collection.ADVANCED_QUIZ_SESSIONS, session.user_id, session, record_id=session.id
        )
        logger.info(f"Sessao de quiz salva: {session.id} (score={session.score})")
        return record

    async def get_session(self, user_id: str, session_id: str) -> dict[str, Any] | None:
        return await self.records.get(Collection.ADVANCED_QUIZ_SESSIONS, user_id, session_id)

    async def get_history(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Sessoes concluidas, mais recentes primeiro."""
        return await self.records.select(
            Collection.ADVANCED_QUIZ_SESSIONS,
            user_id,
            where=lambda r: r.get("completed_at") is not None,
            order_by="completed_at",
            limit=limit,
        )

    async def delete_session(self, user_id: str, session_id: str) -> bool:
        deleted = await self.records.delete(Collection.ADVANCED_QUIZ_SESSIONS, user_id, session_id)
        if deleted:
            logger.info(f"Sessao de quiz deletada: {session_id}")
        return deleted

    # =========================================================================
    # PROGRESSO (retomavel)
    # =========================================================================

    async def save_progress(self, user_id: str, progress: QuizProgress) -> QuizProgress:
        """Salva snapshot do quiz em andamento (atualiza last_saved)."""
        progress.touch()
        await self.agentfs.kv.set(self._progress_key(user_id, progress.quiz_id), progress.to_dict())
        logger.debug(
            f"Progresso salvo: {progress.quiz_id} ({progress.answered_count}/{len(progress.questions)})"
        )
        return progress

    async def load_progress(self, user_id: str, quiz_id: str) -> QuizProgress | None:
        """Carrega snapshot; None se nao existir ou estiver corrompido."""
        data = await self.agentfs.kv.get(self._progress_key(user_id, quiz_id))
        if not data:
            logger.debug(f"Progresso nao encontrado: {quiz_id}")
            return None
        try:
            return QuizProgress.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Snapshot de quiz invalido descartado ({quiz_id}): {e}")
            await self.agentfs.kv.delete(self._progress_key(user_id, quiz_id))
            return None

    async def clear_progress(self, user_id: str, quiz_id: str) -> bool:
        key = self._progress_key(user_id, quiz_id)
        if await self.agentfs.kv.get(key) is None:
            return False
        await self.agentfs.kv.delete(key)
        logger.info(f"Progresso removido: {quiz_id}")
        return True

    async def list_progress(self, user_id: str) -> list[str]:
        """IDs dos quizzes em andamento do usuario."""
        prefix = f"{self.PROGRESS_PREFIX}:{user_id}:quiz_progress:"
        entries = await self.agentfs.kv.list(prefix=prefix)

        quiz_ids = []
        for entry in entries:
            key = entry.get("key", "") if isinstance(entry, dict) else str(entry)
            if key.startswith(prefix):
                quiz_ids.append(key[len(prefix):])
        return quiz_ids
