"""
LLM Provider Module

Multi-provider abstraction supporting OpenAI, Anthropic and Google.

Usage:
    from sitechat.llm import LLMProviderFactory, LLMRequest, LLMMessage
    from sitechat.config import get_settings

    config = get_settings()
    provider = LLMProviderFactory.create_chat_provider(config.llm, credential)

    request = LLMRequest(
        messages=[LLMMessage(role="user", content="Hello!")],
    )

    response = await provider.generate(request)
    print(response.content)
"""

from sitechat.llm.anthropic import AnthropicProvider
from sitechat.llm.base import BaseLLMProvider, EmbeddingProviderError, LLMProviderError
from sitechat.llm.factory import LLMProviderFactory
from sitechat.llm.google import GoogleProvider
from sitechat.llm.models import (
    LLMMessage,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    ToolCall,
    ToolDefinition,
)
from sitechat.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    "LLMProviderError",
    "EmbeddingProviderError",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "ToolCall",
    "ToolDefinition",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
]
