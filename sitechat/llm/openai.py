"""
OpenAI LLM Provider

Implementation of BaseLLMProvider for OpenAI's chat and embedding models.
Supports GPT-4o, GPT-4o-mini and the text-embedding-3 family.
"""

import json
import logging

import openai
from openai import AsyncOpenAI

from sitechat.llm.base import BaseLLMProvider, EmbeddingProviderError, LLMProviderError
from sitechat.llm.models import (
    LLMRequest,
    LLMResponse,
    LLMUsage,
    ToolCall,
    ToolDefinition,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI provider implementation.

    Uses the official openai Python SDK with async support. Tool definitions
    are sent as ``function`` tools and returned tool calls are decoded into
    ``ToolCall`` objects.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        embedding_model: str = "text-embedding-3-small",
        temperature: float = 0.0,
        max_tokens: int = 1024,
        timeout: int = 30,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default chat model
            embedding_model: Embedding model
            temperature: Default temperature
            max_tokens: Default max tokens
            timeout: Request timeout
        """
        super().__init__(
            provider_name="openai",
            model=model,
            embedding_model=embedding_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.client = AsyncOpenAI(
            api_key=api_key,
            timeout=float(timeout),
            max_retries=0,
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate completion using OpenAI API.

        Args:
            request: LLM request

        Returns:
            LLMResponse with generated content and tool calls

        Raises:
            LLMProviderError: On API errors or timeouts
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        messages = [{"role": msg.role, "content": msg.content} for msg in request.messages]
        params = dict(request.metadata)
        if request.tools:
            params["tools"] = [self._to_openai_tool(tool) for tool in request.tools]

        try:
            response = await self.client.chat.completions.create(
                model=request.model or self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                **params,
            )
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API error {e.status_code}: {e.response.text}")
            raise LLMProviderError(
                "openai", "chat completion failed", status_code=e.status_code, body=e.response.text
            ) from e
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMProviderError("openai", f"chat completion failed: {e}") from e

        choice = response.choices[0]
        usage = response.usage
        llm_response = LLMResponse(
            content=choice.message.content or "",
            tool_calls=[self._from_openai_tool_call(tc) for tc in choice.message.tool_calls or []],
            model=response.model,
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=self._map_finish_reason(choice.finish_reason),
            provider="openai",
            metadata={"id": response.id, "created": response.created},
        )

        self._log_response(llm_response)
        return llm_response

    async def embed(self, text: str) -> list[float]:
        """Embed ``text`` with the configured embedding model."""
        try:
            response = await self.client.embeddings.create(
                model=self.embedding_model,
                input=text,
            )
        except openai.APIStatusError as e:
            logger.error(f"OpenAI embedding error {e.status_code}: {e.response.text}")
            raise EmbeddingProviderError(
                "openai", "embedding failed", status_code=e.status_code, body=e.response.text
            ) from e
        except openai.APIError as e:
            logger.error(f"OpenAI embedding error: {e}")
            raise EmbeddingProviderError("openai", f"embedding failed: {e}") from e

        return list(response.data[0].embedding)

    @staticmethod
    def _to_openai_tool(tool: ToolDefinition) -> dict:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }

    @staticmethod
    def _from_openai_tool_call(tool_call) -> ToolCall:
        raw = tool_call.function.arguments or "{}"
        try:
            arguments = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Undecodable tool arguments from OpenAI: {raw[:200]}")
            arguments = None
        if arguments is not None and not isinstance(arguments, dict):
            arguments = None
        return ToolCall(id=tool_call.id, name=tool_call.function.name, arguments=arguments)

    def _map_finish_reason(self, reason: str | None) -> str:
        """Map OpenAI finish reason to our standard format."""
        if reason in ("stop", "length", "tool_calls", "content_filter"):
            return reason
        if reason == "function_call":
            return "tool_calls"
        return "stop"
