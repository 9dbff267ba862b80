"""When to summarize."""

import hashlib
import logging
import re
from typing import List, Optional, Tuple

from pydantic import BaseModel

from config.settings import MemorySettings
from schemas.memory import TriggerDecision, TriggerEvaluation
from .models import ChatContext, ChatMessage

logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"\b\w+\b")


def count_words(text: str) -> int:
    return len(_WORD_PATTERN.findall(text or ""))


def text_hash(text: str) -> str:
    return hashlib.md5((text or "").encode("utf-8")).hexdigest()


def last_message_hash(chat: List[ChatMessage]) -> str:
    return text_hash(chat[-1].text if chat else "")


class TriggerState(BaseModel):
    """What the chat looked like at the end of the previous evaluation."""
    character_id: Optional[str] = None
    group_id: Optional[str] = None
    chat_id: Optional[str] = None
    message_count: Optional[int] = None
    message_hash: Optional[str] = None

    def capture(self, context: ChatContext):
        self.character_id = context.character_id
        self.group_id = context.group_id
        self.chat_id = context.chat_id
        self.message_count = len(context.chat)
        self.message_hash = last_message_hash(context.chat)

    def is_switch(self, context: ChatContext) -> bool:
        return (
            (bool(context.group_id) and context.group_id != self.group_id)
            or context.character_id != self.character_id
            or context.chat_id != self.chat_id
        )

    def is_unchanged(self, context: ChatContext) -> bool:
        return (
            self.message_count == len(context.chat)
            and self.message_hash == last_message_hash(context.chat)
        )


class TriggerPolicy:
    """Decides on every chat event whether a summary is due."""

    @staticmethod
    def count_since_last_summary(chat: List[ChatMessage]) -> Tuple[int, int]:
        """Messages and words newer than the newest message carrying a memory."""
        messages = 0
        words = 0
        for message in reversed(chat):
            if message.memory:
                break
            messages += 1
            words += count_words(message.text)
        return messages, words

    def check_thresholds(
        self,
        chat: List[ChatMessage],
        settings: MemorySettings,
        force: bool = False
    ) -> TriggerEvaluation:
        """Interval / word-count part of the decision."""
        if settings.prompt_interval == 0 and not force:
            return TriggerEvaluation(decision=TriggerDecision.NOT_DUE, reason="interval disabled")

        if not chat:
            return TriggerEvaluation(decision=TriggerDecision.NOT_DUE, reason="empty chat")

        if len(chat) < settings.prompt_interval and not force:
            return TriggerEvaluation(
                decision=TriggerDecision.NOT_DUE,
                reason=f"not enough messages (chat: {len(chat)}, interval: {settings.prompt_interval})"
            )

        messages, words = self.count_since_last_summary(chat)
        due = messages >= settings.prompt_interval or (
            settings.prompt_force_words > 0 and words >= settings.prompt_force_words
        )

        return TriggerEvaluation(
            decision=TriggerDecision.DUE if due or force else TriggerDecision.NOT_DUE,
            messages_since_summary=messages,
            words_since_summary=words,
            reason="" if due or force else (
                f"conditions not satisfied (messages: {messages}, interval: {settings.prompt_interval}, "
                f"words: {words}, force words: {settings.prompt_force_words})"
            )
        )

    def evaluate(
        self,
        context: ChatContext,
        settings: MemorySettings,
        state: TriggerState,
        in_flight: bool = False,
        generating: bool = False,
        force: bool = False
    ) -> TriggerEvaluation:
        """
        Evaluate one chat event.

        The newest message's memory is dropped when that message was edited
        or regenerated after being summarized. The state is captured here for
        SWITCH_DETECTED and NOT_DUE; for DUE the caller captures it once the
        run is over. SUPPRESSED leaves it untouched.
        """
        chat = context.chat

        if not context.identity.is_selected:
            return TriggerEvaluation(decision=TriggerDecision.SUPPRESSED, reason="no chat selected")

        if generating:
            return TriggerEvaluation(decision=TriggerDecision.SUPPRESSED, reason="generation in progress")

        if state.is_switch(context):
            state.capture(context)
            return TriggerEvaluation(decision=TriggerDecision.SWITCH_DETECTED)

        if in_flight or settings.frozen:
            reason = "summary in progress" if in_flight else "memory frozen"
            return TriggerEvaluation(decision=TriggerDecision.SUPPRESSED, reason=reason)

        if not chat or state.is_unchanged(context):
            return TriggerEvaluation(decision=TriggerDecision.NOT_DUE, reason="no new messages")

        messages_removed = state.message_count is not None and len(chat) < state.message_count

        stale_memory_dropped = False
        if (
            chat[-1].memory
            and state.message_count == len(chat)
            and last_message_hash(chat) != state.message_hash
        ):
            stale_memory_dropped = chat[-1].drop_memory()

        evaluation = self.check_thresholds(chat, settings, force=force)
        evaluation.messages_removed = messages_removed
        evaluation.stale_memory_dropped = stale_memory_dropped

        if evaluation.decision == TriggerDecision.NOT_DUE:
            logger.debug(f"Summary not due: {evaluation.reason}")
            state.capture(context)

        return evaluation
