"""Core - configuração, logging estruturado e exceções da plataforma."""

from .config import StudyConfig, get_config, reload_config
from .exceptions import (
    AIError,
    AIErrorCode,
    ConflictError,
    GenerationInProgressError,
    InvalidInputError,
    NotFoundError,
    QuizGenerationError,
    StorageError,
    StudyPlatformError,
    ValidationError,
)
from .logger import get_logger, set_request_id, set_user_id

__all__ = [
    # Config
    "StudyConfig",
    "get_config",
    "reload_config",
    # Logging
    "get_logger",
    "set_request_id",
    "set_user_id",
    # Exceptions
    "StudyPlatformError",
    "ValidationError",
    "InvalidInputError",
    "NotFoundError",
    "ConflictError",
    "AIError",
    "AIErrorCode",
    "QuizGenerationError",
    "GenerationInProgressError",
    "StorageError",
]
