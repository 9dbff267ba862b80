"""Stat tracking rules."""

from .models import (
    ComparisonOperator,
    StatEffect,
    StatModifier,
    StatInjection,
    StatRuleSet,
    EXAMPLE_RULE_SET,
)
from .engine import StatRuleEngine, extract_stats
from .loader import load_rule_set

__all__ = [
    "ComparisonOperator",
    "StatEffect",
    "StatModifier",
    "StatInjection",
    "StatRuleSet",
    "EXAMPLE_RULE_SET",
    "StatRuleEngine",
    "extract_stats",
    "load_rule_set",
]
