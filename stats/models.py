"""Stat rule set models."""

from enum import Enum
from typing import List
from pydantic import BaseModel, Field


class ComparisonOperator(str, Enum):
    """Comparisons an injection can make against a stat value."""
    LE = "<="
    GE = ">="
    LT = "<"
    GT = ">"
    EQ = "=="
    NE = "!="


class StatEffect(BaseModel):
    """Change applied to a stat when a modifier is answered a certain way."""
    stat: str
    answer: str
    value: float = 0


class StatModifier(BaseModel):
    """A question put to the model about the latest events."""
    question: str
    use_context: bool = Field(False, alias="useContext")
    effects: List[StatEffect] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class StatInjection(BaseModel):
    """Text to inject while a stat satisfies a comparison."""
    stat: str
    type: ComparisonOperator
    value: float
    injection: str


class StatRuleSet(BaseModel):
    """Stats, the questions that move them, and what their values unlock."""
    stats: List[str] = Field(default_factory=list)
    modifiers: List[StatModifier] = Field(default_factory=list)
    injections: List[StatInjection] = Field(default_factory=list)


EXAMPLE_RULE_SET = StatRuleSet(
    stats=["HP", "attack"],
    modifiers=[
        StatModifier(
            question="Did {{char}} get attacked?",
            use_context=False,
            effects=[
                StatEffect(stat="HP", answer="yes", value=-10),
                StatEffect(stat="HP", answer="no", value=10),
            ],
        ),
    ],
    injections=[
        StatInjection(
            stat="HP",
            type=ComparisonOperator.LE,
            value=0,
            injection="{{char}} has been mortally wounded and will die soon",
        ),
    ],
)
