"""
Google LLM Provider

Implementation of BaseLLMProvider for Google's Gemini models over the
Generative Language REST API.

The API key travels in a request header on every call, so providers built
for different tenants never share client state.
"""

import logging
from typing import Any

import httpx

from sitechat.llm.base import BaseLLMProvider, EmbeddingProviderError, LLMProviderError
from sitechat.llm.models import LLMRequest, LLMResponse, LLMUsage, ToolCall

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GoogleProvider(BaseLLMProvider):
    """
    Google (Gemini) provider implementation.

    Supports Gemini 1.5 chat models and the text-embedding-004 embedding model.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        embedding_model: str = "text-embedding-004",
        temperature: float = 0.0,
        max_tokens: int = 1024,
        timeout: int = 30,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Google provider."""
        super().__init__(
            provider_name="google",
            model=model,
            embedding_model=embedding_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using Google Gemini API."""
        request = self._apply_defaults(request)
        self._log_request(request)

        model_name = request.model or self.model
        system_message, messages = self._split_system(request)

        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if msg["role"] == "assistant" else "user",
                    "parts": [{"text": msg["content"]}],
                }
                for msg in messages
            ],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
            },
        }
        if system_message:
            body["systemInstruction"] = {"parts": [{"text": system_message}]}
        if request.tools:
            body["tools"] = [
                {
                    "functionDeclarations": [
                        {
                            "name": tool.name,
                            "description": tool.description,
                            "parameters": tool.parameters,
                        }
                        for tool in request.tools
                    ]
                }
            ]

        payload = await self._post(
            f"/models/{model_name}:generateContent", body, LLMProviderError, "generateContent"
        )

        candidates = payload.get("candidates") or []
        candidate = candidates[0] if candidates else {}
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for index, part in enumerate((candidate.get("content") or {}).get("parts") or []):
            if "functionCall" in part:
                call = part["functionCall"]
                args = call.get("args", {})
                tool_calls.append(
                    ToolCall(
                        id=f"call_{index}",
                        name=call.get("name", ""),
                        arguments=args if isinstance(args, dict) else None,
                    )
                )
            elif "text" in part:
                text_parts.append(part["text"])

        usage = payload.get("usageMetadata") or {}
        prompt_tokens = int(usage.get("promptTokenCount", 0))
        completion_tokens = int(usage.get("candidatesTokenCount", 0))

        llm_response = LLMResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            model=model_name,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=int(usage.get("totalTokenCount", prompt_tokens + completion_tokens)),
            ),
            finish_reason=self._map_finish_reason(candidate.get("finishReason"), tool_calls),
            provider="google",
            metadata={"raw_finish_reason": candidate.get("finishReason")},
        )

        self._log_response(llm_response)
        return llm_response

    async def embed(self, text: str) -> list[float]:
        """Embed ``text`` with the configured Gemini embedding model."""
        payload = await self._post(
            f"/models/{self.embedding_model}:embedContent",
            {
                "model": f"models/{self.embedding_model}",
                "content": {"parts": [{"text": text}]},
            },
            EmbeddingProviderError,
            "embedContent",
        )
        try:
            return [float(v) for v in payload["embedding"]["values"]]
        except (KeyError, TypeError) as exc:
            raise EmbeddingProviderError(
                "google", "embedding response missing values", body=str(payload)[:500]
            ) from exc

    async def _post(
        self,
        path: str,
        body: dict[str, Any],
        error_cls: type[LLMProviderError],
        operation: str,
    ) -> dict[str, Any]:
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=float(self.timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(path, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Gemini {operation} transport error: {e}")
            raise error_cls("google", f"{operation} failed: {e}") from e

        if response.is_error:
            logger.error(f"Gemini {operation} error {response.status_code}: {response.text}")
            raise error_cls(
                "google",
                f"{operation} failed",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    @staticmethod
    def _map_finish_reason(reason: str | None, tool_calls: list[ToolCall]) -> str:
        if tool_calls:
            return "tool_calls"
        if reason == "MAX_TOKENS":
            return "length"
        if reason in ("SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT"):
            return "content_filter"
        return "stop"
