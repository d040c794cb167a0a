"""
Base LLM Provider

Abstract base class defining the chat-provider capability set.
Ensures a consistent API across OpenAI, Anthropic and Google.
"""

import logging
from abc import ABC, abstractmethod

from sitechat.llm.models import LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """
    Upstream provider returned a non-2xx response or could not be reached.

    Attributes:
        provider: Provider tag (openai, anthropic, google)
        status_code: Upstream HTTP status, if one was received
        body: Upstream error body, preserved for diagnostics
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"[{provider}] {message}")


class EmbeddingProviderError(LLMProviderError):
    """Embedding call failed upstream."""

    pass


class BaseLLMProvider(ABC):
    """
    Abstract base class for chat providers.

    Every provider offers two capabilities: ``generate`` (chat completion with
    optional tool definitions) and ``embed`` (text to vector). Providers are
    constructed per request with the caller's credential.

    Attributes:
        provider_name: Unique identifier for this provider
        temperature: Default sampling temperature
        max_tokens: Default maximum tokens to generate
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        embedding_model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        timeout: int = 30,
    ):
        """
        Initialize base provider.

        Args:
            provider_name: Provider identifier (e.g., "openai", "anthropic")
            model: Default chat model
            embedding_model: Embedding model (None if the provider has none)
            temperature: Default temperature for responses
            max_tokens: Default max tokens for responses
            timeout: Request timeout in seconds
        """
        self.provider_name = provider_name
        self.model = model
        self.embedding_model = embedding_model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider",
            extra={
                "provider": provider_name,
                "model": model,
                "embedding_model": embedding_model,
            },
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            request: LLM request with messages, optional tools and parameters

        Returns:
            LLMResponse with generated content and any tool calls

        Raises:
            LLMProviderError: On non-2xx upstream responses or transport failure
        """
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """
        Embed a text into a vector.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            EmbeddingProviderError: On non-2xx upstream responses
        """
        pass  # pragma: no cover - abstract method

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        """Apply default values to request if not specified."""
        if request.temperature is None:
            request.temperature = self.temperature
        if request.max_tokens is None:
            request.max_tokens = self.max_tokens
        return request

    def _log_request(self, request: LLMRequest) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "message_count": len(request.messages),
                "tool_count": len(request.tools),
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        """Log response details for debugging."""
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "total_tokens": response.usage.total_tokens,
                "finish_reason": response.finish_reason,
                "tool_calls": len(response.tool_calls),
            },
        )

    @staticmethod
    def _split_system(request: LLMRequest) -> tuple[str | None, list[dict[str, str]]]:
        """Separate the system prompt from the rest of the conversation."""
        system_parts: list[str] = []
        messages: list[dict[str, str]] = []
        for msg in request.messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                messages.append({"role": msg.role, "content": msg.content})
        system = "\n\n".join(system_parts) if system_parts else None
        return system, messages
