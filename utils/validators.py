"""Input validators for security."""

import re

from core.exceptions import InvalidInputError

_SAFE_ID = re.compile(r"^[a-zA-Z0-9\-_.@]+$")
MAX_ID_LENGTH = 128


def _validate_identifier(value: str, field: str) -> bool:
    if not value:
        raise InvalidInputError(f"{field} is required", errors=[f"{field} is required"])
    if len(value) > MAX_ID_LENGTH:
        raise InvalidInputError(
            f"{field} is too long",
            errors=[f"{field} must have at most {MAX_ID_LENGTH} characters"],
        )
    # ':' separa segmentos das chaves do AgentFS
    if not _SAFE_ID.match(value) or ".." in value:
        raise InvalidInputError(
            f"Invalid {field} format",
            details={field: value[:20]},
        )
    return True


def validate_user_id(user_id: str) -> bool:
    """Validate user_id before it becomes part of a storage key.

    Returns True if valid, raises InvalidInputError if invalid.
    """
    return _validate_identifier(user_id, "user_id")


def validate_record_id(record_id: str) -> bool:
    """Validate record/session/quiz ids received in URL paths."""
    return _validate_identifier(record_id, "record_id")
