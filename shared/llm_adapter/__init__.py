from shared.llm_adapter.anthropic_provider import AnthropicProvider
from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.factory import ProviderRegistry, build_registry
from shared.llm_adapter.models import (
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
    Usage,
)
from shared.llm_adapter.openai_provider import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "CompletionRequest",
    "CompletionResponse",
    "LLMProvider",
    "ModelInfo",
    "OpenAIProvider",
    "ProviderRegistry",
    "Usage",
    "build_registry",
]
