"""Quiz Module - Geracao avancada de quizzes com IA.

Arquitetura:
- models/: Enums, Schemas Pydantic, QuizProgress
- prompts/: Templates e QuizPromptEngine
- engine/: Generator, Validator, AnswerNormalizer, ScoringEngine
- storage/: QuizStore (AgentFS integration)
- router.py: FastAPI endpoints
"""

from .engine import (
    AdvancedQuizGenerator,
    AnswerNormalizer,
    GenerationResult,
    QuizScoringEngine,
    QuizValidator,
    ValidationResult,
)
from .models import Difficulty, Question, QuestionType, QuizConfig, QuizProgress, QuizSession
from .prompts import QuizPromptEngine
from .storage import QuizStore

__all__ = [
    # Models
    "QuestionType",
    "Difficulty",
    "QuizConfig",
    "Question",
    "QuizSession",
    "QuizProgress",
    # Engines
    "QuizPromptEngine",
    "AdvancedQuizGenerator",
    "GenerationResult",
    "QuizValidator",
    "ValidationResult",
    "AnswerNormalizer",
    "QuizScoringEngine",
    # Storage
    "QuizStore",
]
