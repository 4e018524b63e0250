"""Quiz Prompts - Templates e engine de prompts."""

from .prompt_engine import QuizPromptEngine
from .templates import (
    FALLBACK_EXPLANATION,
    FALLBACK_EXPLANATION_MARKER,
    FALLBACK_LEARNING_OBJECTIVE,
    FALLBACK_OPTIONS,
    FALLBACK_QUESTION_TEXT,
    QUIZ_SYSTEM_PROMPT,
    TRUNCATION_NOTICE,
    VISUAL_DESCRIPTIONS,
)

__all__ = [
    "QuizPromptEngine",
    "QUIZ_SYSTEM_PROMPT",
    "TRUNCATION_NOTICE",
    "FALLBACK_QUESTION_TEXT",
    "FALLBACK_OPTIONS",
    "FALLBACK_EXPLANATION",
    "FALLBACK_EXPLANATION_MARKER",
    "FALLBACK_LEARNING_OBJECTIVE",
    "VISUAL_DESCRIPTIONS",
]
