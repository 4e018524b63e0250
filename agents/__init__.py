"""Agents module - Chat de estudos e registro de uso dos provedores de IA."""

from agents.chat_agent import (
    ChatAgent,
    ChatRequest,
    ChatStreamRegistry,
    ContextItem,
    StreamChunk,
    build_system_prompt,
    estimate_tokens,
    validate_message,
)
from agents.chat_store import ChatStore, default_session_name
from agents.usage_tracker import (
    UsageRecord,
    UsageTracker,
    get_usage_tracker,
    set_usage_tracker,
)

__all__ = [
    # Chat Agent
    "ChatAgent",
    "ChatRequest",
    "ChatStreamRegistry",
    "ContextItem",
    "StreamChunk",
    "build_system_prompt",
    "estimate_tokens",
    "validate_message",
    # Chat Store
    "ChatStore",
    "default_session_name",
    # Usage
    "UsageRecord",
    "UsageTracker",
    "get_usage_tracker",
    "set_usage_tracker",
]
