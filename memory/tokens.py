"""Token counting for prompt budgeting."""

import logging
import threading
from typing import Callable, Iterable, Optional, Union

import tiktoken

logger = logging.getLogger(__name__)

# cl100k_base is a good approximation for most chat models
DEFAULT_ENCODING = "cl100k_base"


class TokenBudgetEstimator:
    """
    Counts tokens for budget fitting.

    Counts are only used to decide what fits, so they need to grow with the
    text, not to match the backend exactly.
    """

    def __init__(
        self,
        encoding_name: str = DEFAULT_ENCODING,
        counter: Optional[Callable[[str], int]] = None
    ):
        """
        Args:
            encoding_name: tiktoken encoding to load on first use
            counter: Replaces tiktoken entirely when given
        """
        self.encoding_name = encoding_name
        self._counter = counter
        self._encoding = None
        self._load_failed = False
        self._lock = threading.Lock()

    def _get_encoding(self):
        with self._lock:
            if self._encoding is None and not self._load_failed:
                try:
                    self._encoding = tiktoken.get_encoding(self.encoding_name)
                    logger.info(f"Token counter initialized with {self.encoding_name} encoding")
                except Exception as e:
                    logger.error(f"Failed to load tiktoken encoding: {e}")
                    self._load_failed = True
            return self._encoding

    def _count(self, text: str) -> int:
        if self._counter is not None:
            return self._counter(text)

        encoding = self._get_encoding()
        if encoding is None:
            # Rough estimate: 1 token ~ 4 chars
            return len(text) // 4
        return len(encoding.encode(text, disallowed_special=()))

    def count(self, text: Union[str, Iterable[str]], padding: int = 0) -> int:
        """
        Count tokens of a string or a sequence of strings.

        Args:
            text: String, or strings counted independently and summed
            padding: Fixed overhead added to the count

        Returns:
            Token count including padding
        """
        if isinstance(text, str):
            return self._count(text) + padding
        return sum(self._count(item) for item in text) + padding
