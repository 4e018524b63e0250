"""Quiz Engines - Logica de negocios."""

from .answer_normalizer import AnswerNormalizer
from .generator import AdvancedQuizGenerator, GenerationResult
from .scoring_engine import QuizScoringEngine, SessionScore
from .validator import QuizValidator, ValidationResult

__all__ = [
    "AnswerNormalizer",
    "QuizValidator",
    "ValidationResult",
    "AdvancedQuizGenerator",
    "GenerationResult",
    "QuizScoringEngine",
    "SessionScore",
]
