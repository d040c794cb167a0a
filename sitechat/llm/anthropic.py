"""
Anthropic LLM Provider

Implementation of BaseLLMProvider for Anthropic's Claude models.
Supports Claude 3.5 Sonnet, Claude 3.5 Haiku, etc.
"""

import logging

import anthropic
from anthropic import AsyncAnthropic

from sitechat.llm.base import BaseLLMProvider, EmbeddingProviderError, LLMProviderError
from sitechat.llm.models import LLMRequest, LLMResponse, LLMUsage, ToolCall

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """
    Anthropic (Claude) provider implementation.

    Uses the anthropic Python SDK. Anthropic offers no embeddings endpoint,
    so ``embed`` always fails; deployments using Claude for chat pair it with
    an OpenAI or Google embedding provider.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        temperature: float = 0.0,
        max_tokens: int = 1024,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="anthropic",
            model=model,
            embedding_model=None,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.client = AsyncAnthropic(api_key=api_key, timeout=float(timeout), max_retries=0)

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using Anthropic API."""
        request = self._apply_defaults(request)
        self._log_request(request)

        # Anthropic requires system message separate
        system_message, messages = self._split_system(request)
        params = dict(request.metadata)
        if system_message:
            params["system"] = system_message
        if request.tools:
            params["tools"] = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.parameters,
                }
                for tool in request.tools
            ]

        try:
            response = await self.client.messages.create(
                model=request.model or self.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                messages=messages,
                **params,
            )
        except anthropic.APIStatusError as e:
            logger.error(f"Anthropic API error {e.status_code}: {e.response.text}")
            raise LLMProviderError(
                "anthropic", "message creation failed", status_code=e.status_code, body=e.response.text
            ) from e
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise LLMProviderError("anthropic", f"message creation failed: {e}") from e

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                arguments = block.input if isinstance(block.input, dict) else None
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=arguments))

        llm_response = LLMResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            model=response.model,
            usage=LLMUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            finish_reason=self._map_finish_reason(response.stop_reason),
            provider="anthropic",
            metadata={"id": response.id},
        )

        self._log_response(llm_response)
        return llm_response

    async def embed(self, text: str) -> list[float]:
        raise EmbeddingProviderError(
            "anthropic", "Anthropic does not provide an embeddings API"
        )

    def _map_finish_reason(self, reason: str | None) -> str:
        """Map Anthropic stop reason to standard format."""
        if reason == "max_tokens":
            return "length"
        elif reason == "tool_use":
            return "tool_calls"
        else:
            return "stop"
