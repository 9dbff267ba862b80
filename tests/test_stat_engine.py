"""Tests for the stat rule engine."""

import pytest
from pydantic import ValidationError
from stats import EXAMPLE_RULE_SET, StatRuleEngine, StatRuleSet, extract_stats, load_rule_set


class TestExtract:
    """Test answer extraction from generated text."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = StatRuleEngine()

    def test_answer_after_stat_name(self):
        """Test the example rules pick up a yes for HP."""
        result = self.engine.extract(EXAMPLE_RULE_SET, "Char took a hit, HP: yes this happened")

        assert result == {"HP": "yes"}

    def test_case_insensitive(self):
        """Test stat names and answers match regardless of case."""
        assert extract_stats(EXAMPLE_RULE_SET, "hp was... NO, nothing happened") == {"HP": "no"}

    def test_spans_lines(self):
        """Test the answer may follow on a later line."""
        assert extract_stats(EXAMPLE_RULE_SET, "HP:\n\nyes") == {"HP": "yes"}

    def test_no_mention(self):
        """Test stats that are not mentioned are absent."""
        assert extract_stats(EXAMPLE_RULE_SET, "Nothing relevant here") == {}

    def test_stat_without_effects_absent(self):
        """Test stats with no possible answers never appear."""
        assert "attack" not in extract_stats(EXAMPLE_RULE_SET, "attack: yes, HP: no")

    def test_special_characters_in_names(self):
        """Test stat names and answers are matched literally."""
        rule_set = StatRuleSet.model_validate({
            "stats": ["HP (max)"],
            "modifiers": [{
                "question": "Healed?",
                "effects": [{"stat": "HP (max)", "answer": "+1", "value": 1}]
            }]
        })

        assert extract_stats(rule_set, "HP (max) went +1") == {"HP (max)": "+1"}
        assert extract_stats(rule_set, "HP max went 1") == {}

    def test_earliest_answer_wins(self):
        """Test the first answer in the text wins over later mentions."""
        assert extract_stats(EXAMPLE_RULE_SET, "HP: no. Later HP: yes") == {"HP": "no"}

    def test_textual_order_beats_rule_order(self):
        """Test answer order in the rules does not decide the match."""
        assert extract_stats(EXAMPLE_RULE_SET, "HP went yes and no") == {"HP": "yes"}
        assert extract_stats(EXAMPLE_RULE_SET, "HP went no and yes") == {"HP": "no"}

    def test_possible_answers_deduplicated(self):
        """Test answers are collected once per stat."""
        answers = StatRuleEngine.possible_answers(EXAMPLE_RULE_SET)

        assert answers == {"HP": ["yes", "no"]}


class TestEffectsAndInjections:
    """Test stat updates and injection conditions."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = StatRuleEngine()

    def test_apply_effects(self):
        """Test matching answers add their deltas."""
        values = {"HP": 20}
        updated = self.engine.apply_effects(EXAMPLE_RULE_SET, {"HP": "yes"}, values)

        assert updated == {"HP": 10}
        assert values == {"HP": 20}

    def test_apply_effects_missing_stat_starts_at_zero(self):
        assert self.engine.apply_effects(EXAMPLE_RULE_SET, {"HP": "no"}) == {"HP": 10}

    def test_injection_active(self):
        """Test the injection fires at or below zero HP."""
        injections = self.engine.active_injections(EXAMPLE_RULE_SET, {"HP": 0}, char_name="Alice")

        assert injections == ["Alice has been mortally wounded and will die soon"]

    def test_injection_inactive(self):
        assert self.engine.active_injections(EXAMPLE_RULE_SET, {"HP": 10}, char_name="Alice") == []

    def test_injection_unknown_stat(self):
        assert self.engine.active_injections(EXAMPLE_RULE_SET, {}) == []


class TestLoader:
    """Test loading rule sets from files."""

    def test_load_yaml(self, tmp_path):
        """Test a YAML rule file with the camelCase context flag."""
        path = tmp_path / "rules.yaml"
        path.write_text(
            "stats: [Mood]\n"
            "modifiers:\n"
            "  - question: 'Is {{char}} happy?'\n"
            "    useContext: true\n"
            "    effects:\n"
            "      - {stat: Mood, answer: 'yes', value: 5}\n"
            "injections:\n"
            "  - {stat: Mood, type: '>=', value: 50, injection: '{{char}} is cheerful'}\n"
        )

        rule_set = load_rule_set(path)

        assert rule_set.stats == ["Mood"]
        assert rule_set.modifiers[0].use_context is True
        assert rule_set.modifiers[0].effects[0].value == 5
        assert rule_set.injections[0].type.value == ">="

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rule_set(tmp_path / "missing.yaml")

    def test_invalid_operator(self, tmp_path):
        """Test unknown comparison operators are rejected."""
        path = tmp_path / "rules.yaml"
        path.write_text(
            "injections:\n"
            "  - {stat: HP, type: '=<', value: 0, injection: dead}\n"
        )

        with pytest.raises(ValidationError):
            load_rule_set(path)
