"""Chat data models."""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from schemas.memory import PromptPosition, PromptRole

MEMORY_KEY = "memory"


class ChatMessage(BaseModel):
    """A single message in a chat."""
    name: str
    text: str = ""
    is_user: bool = False
    is_system: bool = False
    send_date: datetime = Field(default_factory=datetime.now)
    extra: Optional[Dict[str, Any]] = None  # Free-form attachments (memory, etc.)

    @property
    def memory(self) -> Optional[str]:
        """Summary attached to this message, if any."""
        if self.extra:
            return self.extra.get(MEMORY_KEY) or None
        return None

    def set_memory(self, value: str):
        if self.extra is None:
            self.extra = {}
        self.extra[MEMORY_KEY] = value

    def drop_memory(self) -> bool:
        if self.extra and MEMORY_KEY in self.extra:
            del self.extra[MEMORY_KEY]
            return True
        return False


class ChatIdentity(BaseModel):
    """Which chat is active: (character | group, chat)."""
    character_id: Optional[str] = None
    group_id: Optional[str] = None
    chat_id: Optional[str] = None

    @property
    def is_selected(self) -> bool:
        return bool(self.group_id) or self.character_id is not None

    def differs_from(self, other: "ChatIdentity") -> bool:
        """
        True when the active chat is no longer the one a request was built for.

        A character change only counts outside of group chats, where the
        speaking character rotates on every turn.
        """
        return (
            self.group_id != other.group_id
            or self.chat_id != other.chat_id
            or (not self.group_id and self.character_id != other.character_id)
        )


class ExtensionPrompt(BaseModel):
    """Text injected into the generation context by an extension."""
    value: str = ""
    position: PromptPosition = PromptPosition.IN_PROMPT
    depth: int = 0
    role: PromptRole = PromptRole.SYSTEM


class ChatContext(BaseModel):
    """Live view of the active chat as exposed by the host."""
    character_id: Optional[str] = None
    group_id: Optional[str] = None
    chat_id: Optional[str] = None
    chat: List[ChatMessage] = Field(default_factory=list)

    @property
    def identity(self) -> ChatIdentity:
        """Snapshot of the identity triple (a copy, safe to hold across calls)."""
        return ChatIdentity(
            character_id=self.character_id,
            group_id=self.group_id,
            chat_id=self.chat_id,
        )
