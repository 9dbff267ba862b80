"""Suggested trigger thresholds derived from the current chat."""

import logging
import math
from typing import List, Optional

from config.settings import MemorySettings
from .models import ChatMessage
from .tokens import TokenBudgetEstimator
from .trigger import count_words

logger = logging.getLogger(__name__)

INTERVAL_ROUNDING = 5
FORCE_WORDS_ROUNDING = 100
MAX_INTERVAL = 250
MAX_FORCE_WORDS = 10000


def _message_texts(chat: List[ChatMessage]) -> List[str]:
    return [m.text for m in chat if not m.is_system and m.text]


def suggest_interval(
    chat: List[ChatMessage],
    settings: MemorySettings,
    estimator: TokenBudgetEstimator,
    max_context: int
) -> Optional[int]:
    """
    Messages per summary that keep a summarization request within context.

    Returns:
        Interval rounded down to a multiple of 5 (at least 1), or None when
        the chat has no text to measure
    """
    texts = _message_texts(chat)
    word_count = sum(count_words(t) for t in texts)
    if not texts or word_count == 0:
        return None

    token_count = estimator.count("\n".join(texts))
    tokens_per_word = token_count / word_count
    average_message_tokens = token_count / len(texts)
    if average_message_tokens <= 0:
        return None

    target_summary_tokens = round(settings.prompt_words * tokens_per_word)
    prompt_tokens = estimator.count(settings.prompt)
    allowance = max_context - prompt_tokens - target_summary_tokens

    average_per_prompt = math.floor(allowance / average_message_tokens)
    if settings.max_messages_per_request > 0:
        target = settings.max_messages_per_request
    else:
        target = max(0, average_per_prompt)
    adjusted = target + (average_per_prompt - target) / 4

    interval = max(1, math.floor(adjusted / INTERVAL_ROUNDING) * INTERVAL_ROUNDING)
    interval = min(interval, MAX_INTERVAL)
    logger.debug(
        f"Suggested interval {interval} (allowance: {allowance}, "
        f"avg message tokens: {average_message_tokens:.1f}, per prompt: {average_per_prompt})"
    )
    return interval


def suggest_force_words(
    chat: List[ChatMessage],
    settings: MemorySettings,
    estimator: TokenBudgetEstimator,
    max_context: int
) -> Optional[int]:
    """
    Word count since the last summary that should force a new one.

    Returns:
        Word threshold rounded down to a multiple of 100 (at least 1), or None
        when the chat has no text to measure
    """
    texts = _message_texts(chat)
    word_count = sum(count_words(t) for t in texts)
    if not texts or word_count == 0:
        return None

    token_count = estimator.count("\n".join(texts))
    if token_count <= 0:
        return None

    average_message_words = word_count / len(texts)
    words_per_token = word_count / token_count
    max_prompt_words = round(max_context * words_per_token)
    prompt_words = count_words(settings.prompt)
    allowance_words = max_prompt_words - settings.prompt_words - prompt_words

    average_per_prompt = math.floor(allowance_words / average_message_words)
    if settings.max_messages_per_request > 0:
        target = settings.max_messages_per_request
    else:
        target = max(0, average_per_prompt)
    target_summary_words = target * average_message_words + allowance_words / 4

    force_words = max(1, math.floor(target_summary_words / FORCE_WORDS_ROUNDING) * FORCE_WORDS_ROUNDING)
    force_words = min(force_words, MAX_FORCE_WORDS)
    logger.debug(
        f"Suggested force words {force_words} (allowance: {allowance_words}, "
        f"avg message words: {average_message_words:.1f}, per prompt: {average_per_prompt})"
    )
    return force_words
