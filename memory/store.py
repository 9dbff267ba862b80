"""Memories attached to chat messages."""

import logging
from typing import List, Optional

from .host import ChatHost
from .models import ChatMessage
from utils.timing import Debouncer

logger = logging.getLogger(__name__)


def latest_memory_index(chat: List[ChatMessage]) -> int:
    """
    Index of the newest message carrying a memory, or -1.

    The last message is never inspected: it may still be generating.
    """
    for index in range(len(chat) - 2, -1, -1):
        if chat[index].memory:
            return index
    return -1


def latest_memory(chat: List[ChatMessage]) -> str:
    """Memory of the newest message that has one, ignoring the last message."""
    index = latest_memory_index(chat)
    if index < 0:
        return ""
    return chat[index].memory


class MemoryStore:
    """Reads and writes ``extra.memory`` on the host's chat messages."""

    def __init__(self, host: ChatHost, persist_delay: float = 1.0):
        """
        Args:
            host: Chat host whose messages carry the memories
            persist_delay: Seconds to coalesce saves over
        """
        self.host = host
        self._saver = Debouncer(host.save_chat, delay=persist_delay)

    def latest(self, chat: Optional[List[ChatMessage]] = None) -> str:
        if chat is None:
            chat = self.host.get_context().chat
        return latest_memory(chat)

    def latest_index(self, chat: Optional[List[ChatMessage]] = None) -> int:
        if chat is None:
            chat = self.host.get_context().chat
        return latest_memory_index(chat)

    def commit(
        self,
        text: str,
        at_index: Optional[int] = None,
        chat: Optional[List[ChatMessage]] = None
    ) -> Optional[int]:
        """
        Attach ``text`` to a message of a chat.

        Args:
            text: Summary to store
            at_index: Message to attach to (default: second-to-last message)
            chat: Messages to write to (default: the active chat)

        Returns:
            Index written to, or None when the chat is empty
        """
        if chat is None:
            chat = self.host.get_context().chat
        if not chat:
            return None

        index = at_index if at_index is not None else len(chat) - 2
        index = min(max(index, 0), len(chat) - 1)
        chat[index].set_memory(text)
        logger.info(f"Memory saved to message {index}")
        self.request_persist()
        return index

    def clear(self, text: str) -> bool:
        """
        Remove the newest memory equal to ``text`` (restore-previous).

        Returns:
            True when a memory was removed
        """
        chat = self.host.get_context().chat
        for index in range(len(chat) - 2, -1, -1):
            if chat[index].memory == text:
                chat[index].drop_memory()
                logger.info(f"Memory removed from message {index}")
                self.request_persist()
                return True
        return False

    def request_persist(self):
        """Ask the host to save; bursts collapse into one save."""
        self._saver.trigger()

    def flush(self):
        """Save now if a save is pending."""
        self._saver.flush()
