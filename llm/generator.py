"""Text generation entry points used by the summarizer."""

import logging
from typing import Dict, List, Optional

from memory.models import ChatContext, ExtensionPrompt
from memory.tokens import TokenBudgetEstimator
from schemas.memory import PromptPosition, PromptRole
from .base_client import BaseLLMClient, Message

logger = logging.getLogger(__name__)

WORLD_INFO_KEY = "world_info"
AUTHORS_NOTE_KEY = "authors_note"

_ROLE_NAMES = {
    PromptRole.SYSTEM: "system",
    PromptRole.USER: "user",
    PromptRole.ASSISTANT: "assistant",
}


class TextGenerator:
    """Wraps an LLM client with the two request styles the summarizer needs."""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        estimator: TokenBudgetEstimator,
        max_context_tokens: int = 8192,
        default_response_length: int = 300,
        temperature: float = 0.3
    ):
        """
        Initialize the generator.

        Args:
            llm_client: Client that performs the completion
            estimator: Token counter for fitting chat history
            max_context_tokens: Context size of the model
            default_response_length: Response tokens when no override is set
            temperature: Sampling temperature
        """
        self.llm_client = llm_client
        self.estimator = estimator
        self.max_context_tokens = max_context_tokens
        self.default_response_length = default_response_length
        self.temperature = temperature

    def response_length(self, override: int = 0) -> int:
        return override if override > 0 else self.default_response_length

    def max_context_size(self, override_response_length: int = 0) -> int:
        """Tokens left for the prompt once the response is reserved."""
        return max(0, self.max_context_tokens - self.response_length(override_response_length))

    def generate_raw(self, prompt: str, system_prompt: str = "", response_length: int = 0) -> str:
        """
        Generate from an explicit prompt, bypassing chat context assembly.

        Args:
            prompt: User-side prompt text
            system_prompt: Steering instruction
            response_length: Response token override (0 = default)

        Returns:
            Generated text
        """
        messages = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=prompt))

        response = self.llm_client.chat(
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.response_length(response_length)
        )
        return response.content

    def build_context_messages(
        self,
        context: ChatContext,
        instruction: str,
        extension_prompts: Optional[Dict[str, ExtensionPrompt]] = None,
        skip_world_info: bool = False,
        response_length: int = 0
    ) -> List[Message]:
        """
        Assemble a chat-completion context from the active chat.

        Extension prompts in the prompt go first as system messages, in-chat
        ones are inserted ``depth`` messages from the end, and the instruction
        is the final user message. History is filled newest-first until the
        context size is reached.
        """
        prompts = dict(extension_prompts or {})
        if skip_world_info:
            prompts.pop(WORLD_INFO_KEY, None)
            prompts.pop(AUTHORS_NOTE_KEY, None)

        header: List[Message] = []
        in_chat: List[ExtensionPrompt] = []
        for prompt in prompts.values():
            if not prompt.value or prompt.position == PromptPosition.NONE:
                continue
            if prompt.position == PromptPosition.IN_CHAT:
                in_chat.append(prompt)
            else:
                header.append(Message(role="system", content=prompt.value))

        budget = self.max_context_size(response_length)
        used = self.estimator.count([m.content for m in header] + [instruction])
        used += sum(self.estimator.count(p.value) for p in in_chat)

        history: List[Message] = []
        for message in reversed(context.chat):
            if message.is_system or not message.text:
                continue
            content = f"{message.name}: {message.text}"
            cost = self.estimator.count(content)
            if used + cost > budget:
                break
            used += cost
            history.insert(0, Message(role="user" if message.is_user else "assistant", content=content))

        for prompt in sorted(in_chat, key=lambda p: p.depth, reverse=True):
            position = max(0, len(history) - prompt.depth)
            history.insert(position, Message(role=_ROLE_NAMES[prompt.role], content=prompt.value))

        return header + history + [Message(role="user", content=instruction)]

    def generate_quiet(
        self,
        context: ChatContext,
        instruction: str,
        extension_prompts: Optional[Dict[str, ExtensionPrompt]] = None,
        skip_world_info: bool = False,
        response_length: int = 0
    ) -> str:
        """Generate with the regular chat context plus a trailing instruction."""
        messages = self.build_context_messages(
            context,
            instruction,
            extension_prompts=extension_prompts,
            skip_world_info=skip_world_info,
            response_length=response_length
        )
        logger.debug(f"Quiet generation with {len(messages)} context messages")

        response = self.llm_client.chat(
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.response_length(response_length)
        )
        return response.content
