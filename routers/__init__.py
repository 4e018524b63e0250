"""Routers module for the study platform API."""

from .chat import router as chat_router
from .history import router as history_router
from .preferences import router as preferences_router
from .providers import router as providers_router

# Quiz router vive no pacote quiz/
from quiz.router import router as quiz_router

__all__ = [
    "chat_router",
    "history_router",
    "preferences_router",
    "providers_router",
    "quiz_router",
]
