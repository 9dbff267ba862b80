"""Summarization schemas shared by the memory pipeline."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class PromptBuilder(int, Enum):
    """How the summarization request is assembled."""
    DEFAULT = 0
    RAW_BLOCKING = 1
    RAW_NON_BLOCKING = 2


class PromptPosition(int, Enum):
    """Where the host places an extension prompt."""
    NONE = -1
    IN_PROMPT = 0
    IN_CHAT = 1
    BEFORE_PROMPT = 2


class PromptRole(int, Enum):
    """Role of an injected extension prompt."""
    SYSTEM = 0
    USER = 1
    ASSISTANT = 2


class TriggerDecision(str, Enum):
    """Outcome of a trigger evaluation."""
    SWITCH_DETECTED = "switch_detected"
    SUPPRESSED = "suppressed"
    NOT_DUE = "not_due"
    DUE = "due"


class SummarizationMode(str, Enum):
    """Whether a run was started by the trigger policy or by the user."""
    AUTO = "auto"
    FORCED = "forced"


class SummarizationStatus(str, Enum):
    """Terminal state of a summarization run."""
    COMMITTED = "committed"
    SUPPRESSED = "suppressed"
    NO_OP = "no_op"
    NOT_DUE = "not_due"
    STALE = "stale"
    FAILED = "failed"
    EMPTY_WINDOW = "empty_window"


class TriggerEvaluation(BaseModel):
    """Decision plus the counters gathered while making it."""
    decision: TriggerDecision
    messages_since_summary: int = 0
    words_since_summary: int = 0
    messages_removed: bool = Field(False, description="Chat shrank since the last snapshot")
    stale_memory_dropped: bool = Field(False, description="Newest message was edited after being summarized")
    reason: str = ""


class SummaryWindow(BaseModel):
    """Raw prompt assembled from the un-summarized chat tail."""
    raw_prompt: str = ""
    last_used_index: int = -1
    message_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.last_used_index < 0


class SummarizationResult(BaseModel):
    """Result of one orchestrator run."""
    status: SummarizationStatus
    summary: str = ""
    last_used_index: Optional[int] = None
    error: Optional[str] = None

    @property
    def committed(self) -> bool:
        return self.status == SummarizationStatus.COMMITTED
