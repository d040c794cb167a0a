"""
LLM Provider Factory

Factory and registry for creating provider instances from a provider tag.
Supports OpenAI, Anthropic and Google. Providers are built per request
because the credential arrives with each request.
"""

import logging
from typing import Literal

from sitechat.config import LLMSettings
from sitechat.llm.anthropic import AnthropicProvider
from sitechat.llm.base import BaseLLMProvider
from sitechat.llm.google import GoogleProvider
from sitechat.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)

ProviderType = Literal["openai", "anthropic", "google"]


class LLMProviderFactory:
    """
    Factory for creating provider instances.

    Handles provider selection by tag and wires configuration into the
    concrete provider.
    """

    # Registry of available providers
    PROVIDERS = {
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "google": GoogleProvider,
    }

    @staticmethod
    def create_provider(
        provider_type: ProviderType,
        api_key: str,
        config: LLMSettings,
    ) -> BaseLLMProvider:
        """
        Create a provider instance.

        Args:
            provider_type: Type of provider to create
            api_key: Credential used for every call made by this instance
            config: LLM configuration settings

        Returns:
            Configured provider instance

        Raises:
            ValueError: If provider type is unknown or the credential is empty
        """
        if provider_type not in LLMProviderFactory.PROVIDERS:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS.keys())}"
            )
        if not api_key:
            raise ValueError(f"An API key is required for the {provider_type} provider")

        logger.debug(f"Creating {provider_type} provider", extra={"provider": provider_type})

        if provider_type == "openai":
            return OpenAIProvider(
                api_key=api_key,
                model=config.openai_model,
                embedding_model=config.openai_embedding_model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
            )
        elif provider_type == "anthropic":
            return AnthropicProvider(
                api_key=api_key,
                model=config.anthropic_model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
            )
        return GoogleProvider(
            api_key=api_key,
            model=config.google_model,
            embedding_model=config.google_embedding_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            base_url=config.google_base_url,
        )

    @staticmethod
    def create_chat_provider(config: LLMSettings, credential: str) -> BaseLLMProvider:
        """Create the deployment's chat provider for one request."""
        return LLMProviderFactory.create_provider(config.provider, credential, config)

    @staticmethod
    def create_embedding_provider(config: LLMSettings, credential: str | None) -> BaseLLMProvider:
        """
        Create the deployment's embedding provider.

        A deployment-wide ``embedding_api_key`` takes precedence over the
        request credential, which lets Anthropic-backed deployments embed with
        a separate OpenAI or Google key.
        """
        api_key = (
            config.embedding_api_key.get_secret_value()
            if config.embedding_api_key
            else credential
        )
        return LLMProviderFactory.create_provider(config.embedding_provider, api_key or "", config)
