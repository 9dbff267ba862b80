"""Rule-based extraction of stat answers from generated text."""

import logging
import operator
import re
from typing import Dict, List, Optional

from .models import ComparisonOperator, StatInjection, StatRuleSet

logger = logging.getLogger(__name__)

_COMPARISONS = {
    ComparisonOperator.LE: operator.le,
    ComparisonOperator.GE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.NE: operator.ne,
}

_CHAR_MACRO = re.compile(r"\{\{char\}\}", re.IGNORECASE)


class StatRuleEngine:
    """Stateless; every method is a pure function of its arguments."""

    @staticmethod
    def possible_answers(rule_set: StatRuleSet) -> Dict[str, List[str]]:
        """Distinct lowercase answers per stat, in first-seen order."""
        answers: Dict[str, List[str]] = {}
        for modifier in rule_set.modifiers:
            for effect in modifier.effects:
                stat_answers = answers.setdefault(effect.stat, [])
                answer = effect.answer.lower()
                if answer not in stat_answers:
                    stat_answers.append(answer)
        return answers

    @staticmethod
    def build_pattern(stat: str, answers: List[str]) -> re.Pattern:
        """Stat name, then anything (shortest), then one of its answers."""
        alternatives = "|".join(re.escape(answer) for answer in answers)
        return re.compile(f"{re.escape(stat)}.*?({alternatives})", re.IGNORECASE | re.DOTALL)

    def extract(self, rule_set: StatRuleSet, text: str) -> Dict[str, str]:
        """
        Find the answer given for each stat in ``text``.

        The earliest mention of a stat followed by one of its answers wins.
        Stats without a match are left out of the result.

        Args:
            rule_set: Rules declaring the possible answers
            text: Generated text to scan

        Returns:
            Mapping of stat name to the matched answer (lowercase)
        """
        result: Dict[str, str] = {}
        for stat, answers in self.possible_answers(rule_set).items():
            if not answers:
                continue
            match = self.build_pattern(stat, answers).search(text)
            if match:
                result[stat] = match.group(1).lower()
        return result

    @staticmethod
    def apply_effects(
        rule_set: StatRuleSet,
        answers: Dict[str, str],
        values: Optional[Dict[str, float]] = None
    ) -> Dict[str, float]:
        """
        Add the deltas of every effect whose answer was given.

        Args:
            rule_set: Rules holding the effects
            answers: Output of ``extract``
            values: Current stat values (not modified)

        Returns:
            New stat values
        """
        updated = dict(values or {})
        for modifier in rule_set.modifiers:
            for effect in modifier.effects:
                if answers.get(effect.stat) == effect.answer.lower():
                    updated[effect.stat] = updated.get(effect.stat, 0) + effect.value
        return updated

    @staticmethod
    def evaluate_injection(injection: StatInjection, value: float) -> bool:
        return _COMPARISONS[injection.type](value, injection.value)

    def active_injections(
        self,
        rule_set: StatRuleSet,
        values: Dict[str, float],
        char_name: str = ""
    ) -> List[str]:
        """Injection texts whose comparison currently holds."""
        active = []
        for injection in rule_set.injections:
            if injection.stat not in values:
                continue
            if self.evaluate_injection(injection, values[injection.stat]):
                active.append(_CHAR_MACRO.sub(lambda _: char_name, injection.injection))
        return active


def extract_stats(rule_set: StatRuleSet, text: str) -> Dict[str, str]:
    return StatRuleEngine().extract(rule_set, text)
