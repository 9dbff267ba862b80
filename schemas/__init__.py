"""Pydantic schemas for the chat memory summarizer."""

from .memory import (
    PromptBuilder,
    PromptPosition,
    PromptRole,
    TriggerDecision,
    TriggerEvaluation,
    SummarizationMode,
    SummarizationStatus,
    SummarizationResult,
    SummaryWindow,
)

__all__ = [
    "PromptBuilder",
    "PromptPosition",
    "PromptRole",
    "TriggerDecision",
    "TriggerEvaluation",
    "SummarizationMode",
    "SummarizationStatus",
    "SummarizationResult",
    "SummaryWindow",
]
