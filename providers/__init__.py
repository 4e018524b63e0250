"""Provedores de IA - OpenAI, Anthropic e Gemini sobre httpx."""

from .anthropic_provider import AnthropicProvider
from .base import (
    COST_PER_1K_TOKENS,
    DEFAULT_MODELS,
    AIProviderName,
    AIResponse,
    BaseAIProvider,
    ProviderConfig,
    estimate_cost,
    mask_api_key,
    with_retry,
)
from .factory import AIProviderFactory
from .gemini_provider import GeminiProvider
from .image_generator import ImageGenerator
from .openai_provider import OpenAIProvider

__all__ = [
    "AIProviderName",
    "AIResponse",
    "BaseAIProvider",
    "ProviderConfig",
    "DEFAULT_MODELS",
    "COST_PER_1K_TOKENS",
    "estimate_cost",
    "mask_api_key",
    "with_retry",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "AIProviderFactory",
    "ImageGenerator",
]
