"""Tests for WindowBuilder."""

import pytest
from memory.models import ChatMessage
from memory.tokens import TokenBudgetEstimator
from memory.window import WindowBuilder
from tests.fakes import make_messages, word_counter

SYSTEM_PROMPT = "Summarize please"


class TestWindowBuilder:
    """Test token-budgeted window assembly."""

    def setup_method(self):
        """Set up test fixtures."""
        self.builder = WindowBuilder(TokenBudgetEstimator(counter=word_counter))
        # Six messages: indices 0-4 are eligible, 5 is the one in progress.
        # Each entry "Name:\nwN wN wN" costs 4 tokens, the system prompt 2,
        # and every estimate carries 64 tokens of padding.
        self.chat = make_messages(6)

    def test_budget_fits_two_of_five(self):
        """Test only the messages that fit are included."""
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=64 + 2 + 8)

        assert window.message_count == 2
        assert window.last_used_index == 1
        assert window.raw_prompt == "User:\nw0 w0 w0\n\nBot:\nw1 w1 w1"

    def test_raw_prompt_excludes_system_prompt(self):
        """Test the instruction is counted but not returned."""
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=1000)

        assert SYSTEM_PROMPT not in window.raw_prompt

    def test_newest_message_excluded(self):
        """Test the last message never enters the window."""
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=1000)

        assert window.message_count == 5
        assert window.last_used_index == 4
        assert "w5" not in window.raw_prompt

    def test_budget_boundary(self):
        """Test the result fits and one more message would not."""
        budget = 64 + 2 + 13
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=budget)
        entries = window.raw_prompt.split("\n\n")

        assert self.builder.estimate(SYSTEM_PROMPT, "", entries) <= budget
        next_entry = f"{self.chat[window.last_used_index + 1].name}:\n{self.chat[window.last_used_index + 1].text}"
        assert self.builder.estimate(SYSTEM_PROMPT, "", entries + [next_entry]) > budget

    def test_nothing_fits(self):
        """Test an impossible budget yields an empty window."""
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=10)

        assert window.is_empty
        assert window.last_used_index == -1
        assert window.message_count == 0

    def test_starts_after_latest_summary(self):
        """Test summarized messages are skipped and the summary leads the prompt."""
        self.chat[1].set_memory("earlier events")
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=1000)

        assert window.raw_prompt.startswith("earlier events\n\nUser:\nw2 w2 w2")
        assert window.message_count == 3
        assert window.last_used_index == 4

    def test_summary_counts_against_budget(self):
        """Test the previous summary takes part of the budget."""
        self.chat[0].set_memory("one two three four")
        # 64 padding + 2 system + 4 summary + 4 per entry
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=64 + 2 + 4 + 8)

        assert window.message_count == 2
        assert window.last_used_index == 2

    def test_skips_system_and_empty_messages(self):
        """Test system and blank messages are not included."""
        chat = [
            ChatMessage(name="User", text="hello there"),
            ChatMessage(name="System", text="note", is_system=True),
            ChatMessage(name="Bot", text=""),
            ChatMessage(name="Bot", text="general kenobi"),
            ChatMessage(name="User", text="in progress"),
        ]
        window = self.builder.build(chat, SYSTEM_PROMPT, budget=1000)

        assert window.raw_prompt == "User:\nhello there\n\nBot:\ngeneral kenobi"
        assert window.last_used_index == 3
        assert window.message_count == 2

    def test_max_messages_per_request(self):
        """Test the message cap stops the scan early."""
        window = self.builder.build(self.chat, SYSTEM_PROMPT, budget=1000, max_messages=3)

        assert window.message_count == 3
        assert window.last_used_index == 2

    def test_only_last_message(self):
        """Test a chat with a single message has nothing to summarize."""
        window = self.builder.build(make_messages(1), SYSTEM_PROMPT, budget=1000)

        assert window.is_empty
