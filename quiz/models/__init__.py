"""Quiz Models - Enums, Schemas e State."""

from .enums import (
    FREE_TEXT_QUESTION_TYPES,
    VISUAL_QUESTION_TYPES,
    ContentType,
    Difficulty,
    QuestionDepth,
    QuestionType,
    SourceType,
    VisualType,
)
from .schemas import (
    AnswerCheckRequest,
    AnswerCheckResponse,
    FollowUpQuizRequest,
    GenerateQuizRequest,
    GenerateQuizResponse,
    PerformanceAnalytics,
    Question,
    QuestionMetadata,
    QuestionResult,
    QuizConfig,
    QuizSession,
    SubmitSessionRequest,
    SubmitSessionResponse,
    SubQuestion,
    ValidationResponse,
    VisualContent,
)
from .state import QuizProgress

__all__ = [
    # Enums
    "QuestionType",
    "Difficulty",
    "QuestionDepth",
    "ContentType",
    "VisualType",
    "SourceType",
    "VISUAL_QUESTION_TYPES",
    "FREE_TEXT_QUESTION_TYPES",
    # Schemas
    "QuizConfig",
    "Question",
    "QuestionMetadata",
    "SubQuestion",
    "VisualContent",
    "QuizSession",
    "GenerateQuizRequest",
    "GenerateQuizResponse",
    "ValidationResponse",
    "AnswerCheckRequest",
    "AnswerCheckResponse",
    "FollowUpQuizRequest",
    "SubmitSessionRequest",
    "SubmitSessionResponse",
    "QuestionResult",
    "PerformanceAnalytics",
    # State
    "QuizProgress",
]
