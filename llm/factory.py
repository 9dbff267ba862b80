"""LLM client factory."""

import logging
from enum import Enum
from typing import Optional

from config.settings import Settings
from .base_client import BaseLLMClient
from .openai_client import OpenAIClient
from .anthropic_client import AnthropicClient

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def create_llm_client(
    provider: LLMProvider,
    api_key: Optional[str] = None,
    model: Optional[str] = None
) -> BaseLLMClient:
    """
    Create an LLM client for the specified provider.

    Args:
        provider: LLM provider (openai or anthropic)
        api_key: API key for the provider
        model: Optional model override

    Returns:
        Configured LLM client

    Raises:
        ValueError: If provider is not supported
    """
    if provider == LLMProvider.OPENAI:
        return OpenAIClient(api_key=api_key, model=model)
    elif provider == LLMProvider.ANTHROPIC:
        return AnthropicClient(api_key=api_key, model=model)
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")


def create_llm_client_from_settings(settings: Settings) -> BaseLLMClient:
    """Create the summarization client described by the application settings."""
    api_key = settings.get_llm_api_key()
    if not api_key:
        logger.warning(
            f"No API key for {settings.llm_provider}. "
            "Summarization requests will fail until one is configured."
        )

    client = create_llm_client(
        provider=LLMProvider(settings.llm_provider),
        api_key=api_key,
        model=settings.llm_model
    )
    logger.info(f"LLM client ready: {settings.llm_provider} ({client.get_model_name()})")
    return client
