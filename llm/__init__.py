"""LLM client abstraction layer."""

from .base_client import BaseLLMClient, Message, LLMResponse
from .factory import create_llm_client, create_llm_client_from_settings, LLMProvider
from .generator import TextGenerator

__all__ = [
    "BaseLLMClient",
    "Message",
    "LLMResponse",
    "create_llm_client",
    "create_llm_client_from_settings",
    "LLMProvider",
    "TextGenerator",
]
