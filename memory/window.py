"""Token-budgeted window over the un-summarized chat tail."""

import logging
from typing import List

from schemas.memory import SummaryWindow
from .models import ChatMessage
from .store import latest_memory, latest_memory_index
from .tokens import TokenBudgetEstimator

logger = logging.getLogger(__name__)

DELIMITER = "\n\n"
# Allowance for chat-template overhead around the prompt
PADDING = 64


class WindowBuilder:
    """
    Builds the raw summarization prompt from the messages after the last memory.

    The prompt is the previous summary followed by as many ``"name:\\ntext"``
    entries as fit the budget together with the system prompt.
    """

    def __init__(self, estimator: TokenBudgetEstimator, padding: int = PADDING):
        self.estimator = estimator
        self.padding = padding

    @staticmethod
    def _assemble(system_prompt: str, summary: str, entries: List[str], include_system: bool) -> str:
        parts = []
        if include_system and system_prompt:
            parts.append(system_prompt)
        if summary:
            parts.append(summary)
        parts.append(DELIMITER.join(entries))
        return DELIMITER.join(parts).strip()

    def estimate(self, system_prompt: str, summary: str, entries: List[str]) -> int:
        """Token cost of the full request, system prompt and padding included."""
        return self.estimator.count(
            self._assemble(system_prompt, summary, entries, include_system=True),
            padding=self.padding
        )

    def build(
        self,
        chat: List[ChatMessage],
        system_prompt: str,
        budget: int,
        max_messages: int = 0
    ) -> SummaryWindow:
        """
        Fit the longest run of un-summarized messages into ``budget`` tokens.

        Args:
            chat: Messages of the active chat
            system_prompt: Summarization instruction (counted, not returned)
            budget: Maximum tokens for the whole request
            max_messages: Stop after this many messages (0 = no limit)

        Returns:
            SummaryWindow; ``last_used_index`` is -1 when nothing fit
        """
        summary = latest_memory(chat)
        start = latest_memory_index(chat) + 1
        # The newest message is still in progress
        end = len(chat) - 1

        entries: List[str] = []
        last_used_index = -1

        for index in range(start, end):
            message = chat[index]
            if message.is_system or not message.text:
                continue

            entries.append(f"{message.name}:\n{message.text}")

            if self.estimate(system_prompt, summary, entries) > budget:
                entries.pop()
                break

            last_used_index = index

            if max_messages > 0 and len(entries) >= max_messages:
                break

        logger.debug(
            f"Summary window: {len(entries)} messages from index {start}, "
            f"last used {last_used_index}, budget {budget}"
        )

        return SummaryWindow(
            raw_prompt=self._assemble(system_prompt, summary, entries, include_system=False),
            last_used_index=last_used_index,
            message_count=len(entries)
        )
