"""Rolling chat memory: when to summarize, what to send, where to store it."""

from .models import ChatMessage, ChatIdentity, ChatContext, ExtensionPrompt
from .host import ChatHost, LocalChatHost
from .sqlite_store import SQLiteChatStore
from .tokens import TokenBudgetEstimator
from .store import MemoryStore, latest_memory, latest_memory_index
from .window import WindowBuilder
from .trigger import TriggerPolicy, TriggerState

__all__ = [
    "ChatMessage",
    "ChatIdentity",
    "ChatContext",
    "ExtensionPrompt",
    "ChatHost",
    "LocalChatHost",
    "SQLiteChatStore",
    "TokenBudgetEstimator",
    "MemoryStore",
    "latest_memory",
    "latest_memory_index",
    "WindowBuilder",
    "TriggerPolicy",
    "TriggerState",
]
