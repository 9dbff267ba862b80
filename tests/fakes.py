"""Test doubles shared by the test modules."""

from typing import Callable, List, Optional

from llm.base_client import BaseLLMClient, LLMResponse, Message
from llm.generator import TextGenerator
from memory.host import LocalChatHost
from memory.models import ChatContext, ChatMessage
from memory.tokens import TokenBudgetEstimator


def word_counter(text: str) -> int:
    return len(text.split())


class FakeLLMClient(BaseLLMClient):
    """Returns canned replies and records every request."""

    def __init__(
        self,
        reply: str = "A summary.",
        error: Optional[Exception] = None,
        on_chat: Optional[Callable[[List[Message]], None]] = None
    ):
        self.reply = reply
        self.error = error
        self.on_chat = on_chat
        self.calls: List[dict] = []

    def chat(self, messages, temperature=0.7, max_tokens=4000) -> LLMResponse:
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        if self.on_chat is not None:
            self.on_chat(messages)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply)

    def get_provider_name(self) -> str:
        return "fake"

    def get_model_name(self) -> str:
        return "fake-model"


def make_messages(count: int, words_per_message: int = 3) -> List[ChatMessage]:
    messages = []
    for i in range(count):
        text = " ".join([f"w{i}"] * words_per_message)
        messages.append(ChatMessage(name="User" if i % 2 == 0 else "Bot", text=text, is_user=i % 2 == 0))
    return messages


class CountingHost(LocalChatHost):
    """Local host that counts saves instead of needing a database."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.save_count = 0

    def save_chat(self):
        self.save_count += 1
        super().save_chat()


def make_host(count: int = 0, chat_id: str = "chat-1", character_id: Optional[str] = "char-1") -> CountingHost:
    context = ChatContext(character_id=character_id, chat_id=chat_id, chat=make_messages(count))
    return CountingHost(context=context)


def make_generator(client: BaseLLMClient, max_context_tokens: int = 1000, response_length: int = 100) -> TextGenerator:
    return TextGenerator(
        llm_client=client,
        estimator=TokenBudgetEstimator(counter=word_counter),
        max_context_tokens=max_context_tokens,
        default_response_length=response_length
    )
