"""Application settings."""

import os
import re
from typing import Optional
from pydantic import BaseModel, Field

from schemas.memory import PromptBuilder, PromptPosition, PromptRole


DEFAULT_PROMPT = (
    "[Pause your roleplay. Summarize the most important facts and events in the story so far. "
    "If a summary already exists in your memory, use that as a base and expand with new facts. "
    "Limit the summary to {{words}} words or less. "
    "Your response should include nothing but the summary.]"
)
DEFAULT_TEMPLATE = "[Summary: {{summary}}]"

_WORDS_MACRO = re.compile(r"\{\{words\}\}", re.IGNORECASE)


class MemorySettings(BaseModel):
    """Summarization options, with the ranges the settings panel allows."""

    frozen: bool = False
    skip_world_info: bool = False
    prompt: str = DEFAULT_PROMPT
    template: str = DEFAULT_TEMPLATE

    # Injection of the memory into the generation context
    position: PromptPosition = PromptPosition.IN_PROMPT
    role: PromptRole = PromptRole.SYSTEM
    depth: int = Field(2, ge=0, le=999)

    # Target summary length in words
    prompt_words: int = Field(200, ge=25, le=1000)
    # Messages between automatic summaries (0 disables automatic runs)
    prompt_interval: int = Field(10, ge=0, le=250)
    # Words since the last summary that force a run (0 disables)
    prompt_force_words: int = Field(0, ge=0, le=10000)
    override_response_length: int = Field(0, ge=0, le=4096)
    max_messages_per_request: int = Field(0, ge=0, le=250)
    prompt_builder: PromptBuilder = PromptBuilder.DEFAULT

    def render_prompt(self, override: Optional[str] = None) -> str:
        """Summarization instruction with {{words}} filled in."""
        prompt = override or self.prompt or ""
        return _WORDS_MACRO.sub(str(self.prompt_words), prompt)


class Settings(BaseModel):
    """Application configuration settings."""

    # LLM Provider settings
    llm_provider: str = "openai"  # "openai" or "anthropic"
    llm_model: Optional[str] = None

    # API Keys
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Context budget
    max_context_tokens: int = 8192
    default_response_length: int = 300
    token_encoding: str = "cl100k_base"

    # Chat storage
    db_path: str = "data/chats.db"
    persist_debounce_seconds: float = 1.0

    # Waiting for other generations to finish
    busy_timeout_seconds: float = 30.0
    group_timeout_seconds: float = 1.0

    memory: MemorySettings = Field(default_factory=MemorySettings)

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load API keys from environment if not provided
        if "openai_api_key" not in data or data["openai_api_key"] is None:
            data["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

        if "anthropic_api_key" not in data or data["anthropic_api_key"] is None:
            data["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

        super().__init__(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """Get the API key for the configured LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return None
