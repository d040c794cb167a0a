"""
LLM Request and Response Models

Pydantic models for chat provider interactions.
Provider-agnostic models that work across OpenAI, Anthropic and Google.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """Single message in an LLM conversation."""

    role: Literal["system", "user", "assistant"] = Field(
        ...,
        description="Message role"
    )
    content: str = Field(
        ...,
        description="Message content",
        min_length=1
    )


class ToolDefinition(BaseModel):
    """A function the model may ask the caller to run."""

    name: str = Field(
        ...,
        description="Tool name the model refers to in its tool call"
    )
    description: str = Field(
        ...,
        description="What the tool does, shown to the model"
    )
    parameters: Dict[str, Any] = Field(
        ...,
        description="JSON schema of the tool arguments"
    )


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str = Field(
        default="",
        description="Provider-assigned call identifier"
    )
    name: str = Field(
        ...,
        description="Name of the requested tool"
    )
    arguments: Optional[Dict[str, Any]] = Field(
        default_factory=dict,
        description="Decoded tool arguments (None if the model sent undecodable JSON)"
    )


class LLMRequest(BaseModel):
    """Request to an LLM provider."""

    messages: List[LLMMessage] = Field(
        ...,
        description="Conversation messages",
        min_length=1
    )
    tools: List[ToolDefinition] = Field(
        default_factory=list,
        description="Tools the model may call"
    )
    temperature: Optional[float] = Field(
        None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (overrides default)"
    )
    max_tokens: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum tokens to generate (overrides default)"
    )
    model: Optional[str] = Field(
        None,
        description="Specific model to use (overrides default)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific parameters"
    )


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = Field(
        ...,
        ge=0,
        description="Number of tokens in the prompt"
    )
    completion_tokens: int = Field(
        ...,
        ge=0,
        description="Number of tokens in the completion"
    )
    total_tokens: int = Field(
        ...,
        ge=0,
        description="Total tokens used"
    )


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str = Field(
        default="",
        description="Generated text content"
    )
    tool_calls: List[ToolCall] = Field(
        default_factory=list,
        description="Tool calls requested by the model, in provider order"
    )
    model: str = Field(
        ...,
        description="Model that generated the response"
    )
    usage: LLMUsage = Field(
        ...,
        description="Token usage information"
    )
    finish_reason: Literal["stop", "length", "tool_calls", "content_filter", "error"] = Field(
        ...,
        description="Reason the generation stopped"
    )
    provider: str = Field(
        ...,
        description="Provider that handled the request (openai, anthropic, google)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific response data"
    )
