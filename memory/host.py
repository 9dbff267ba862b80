"""The conversation host the summarizer runs inside of."""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext
from typing import Optional, Dict

from schemas.memory import PromptPosition, PromptRole
from .models import ChatContext, ChatMessage, ExtensionPrompt
from .sqlite_store import SQLiteChatStore

logger = logging.getLogger(__name__)


class ChatHost(ABC):
    """
    Owner of the active chat.

    The summarizer only reads the chat, writes message extras, injects its
    memory prompt and toggles the user's ability to send.
    """

    @abstractmethod
    def get_context(self) -> ChatContext:
        """Return the live context; ``chat`` is the host's own message list."""
        pass

    @abstractmethod
    def is_generating(self) -> bool:
        """True while a reply is being generated for the user."""
        pass

    @abstractmethod
    def is_group_generating(self) -> bool:
        """True while members of a group chat are still taking turns."""
        pass

    @abstractmethod
    def deactivate_send_buttons(self):
        pass

    @abstractmethod
    def activate_send_buttons(self):
        pass

    @abstractmethod
    def save_chat(self):
        """Persist the active chat."""
        pass

    @abstractmethod
    def set_extension_prompt(
        self,
        key: str,
        value: str,
        position: PromptPosition,
        depth: int,
        role: PromptRole
    ):
        pass

    @abstractmethod
    def get_extension_prompts(self) -> Dict[str, ExtensionPrompt]:
        pass

    def locked(self):
        """
        Hold off chat switches and edits while the caller reads and writes
        the active chat. Hosts that mutate the chat from other threads must
        override this.
        """
        return nullcontext()


class LocalChatHost(ChatHost):
    """In-process host backed by an optional SQLite chat store."""

    def __init__(
        self,
        context: Optional[ChatContext] = None,
        store: Optional[SQLiteChatStore] = None
    ):
        self.context = context or ChatContext()
        self.store = store
        self.generating = False
        self.group_generating = False
        self.send_buttons_active = True
        self.extension_prompts: Dict[str, ExtensionPrompt] = {}
        self._lock = threading.RLock()

    def get_context(self) -> ChatContext:
        return self.context

    @contextmanager
    def locked(self):
        with self._lock:
            yield

    def switch_chat(self, context: ChatContext):
        """Make another chat the active one."""
        with self._lock:
            self.context = context

    def add_message(self, name: str, text: str, is_user: bool = False, is_system: bool = False) -> ChatMessage:
        message = ChatMessage(name=name, text=text, is_user=is_user, is_system=is_system)
        with self._lock:
            self.context.chat.append(message)
        return message

    def is_generating(self) -> bool:
        return self.generating

    def is_group_generating(self) -> bool:
        return self.group_generating

    def deactivate_send_buttons(self):
        self.send_buttons_active = False

    def activate_send_buttons(self):
        self.send_buttons_active = True

    def save_chat(self):
        with self._lock:
            if self.store is not None:
                self.store.save_chat(self.context)

    def set_extension_prompt(
        self,
        key: str,
        value: str,
        position: PromptPosition,
        depth: int,
        role: PromptRole
    ):
        self.extension_prompts[key] = ExtensionPrompt(
            value=value,
            position=position,
            depth=depth,
            role=role
        )

    def get_extension_prompts(self) -> Dict[str, ExtensionPrompt]:
        return dict(self.extension_prompts)
