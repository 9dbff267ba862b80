"""Loading stat rule sets from disk."""

import logging
from pathlib import Path
from typing import Union

import yaml

from .models import StatRuleSet

logger = logging.getLogger(__name__)


def load_rule_set(path: Union[str, Path]) -> StatRuleSet:
    """
    Load a rule set from a YAML or JSON file.

    Args:
        path: Rule file (JSON is valid YAML)

    Returns:
        Validated StatRuleSet

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the rules are malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule set not found at '{path}'")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    rule_set = StatRuleSet.model_validate(data)
    logger.info(
        f"Loaded {len(rule_set.stats)} stats, {len(rule_set.modifiers)} modifiers "
        f"and {len(rule_set.injections)} injections from {path.name}"
    )
    return rule_set
