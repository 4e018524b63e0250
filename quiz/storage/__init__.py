"""Quiz Storage - Persistencia sobre AgentFS."""

from .quiz_store import QuizStore

__all__ = ["QuizStore"]
