# ndasurvey/wizard/progress.py
import math
from typing import Any, Mapping, Sequence

from ndasurvey.wizard.rules import CONDITIONAL_RULES, REQUIRED_FIELDS, ConditionalRule, active_children


def is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def calculate_progress(answers: Mapping[str, Any],
                       required: Sequence[str] = REQUIRED_FIELDS,
                       rules: Mapping[str, ConditionalRule] = CONDITIONAL_RULES) -> int:
    """
    Completion percentage (0-100) of a questionnaire draft.

    Required fields always count; follow-up fields count only while their
    parent answer unlocks them. Rounds half up.
    """
    if not required:
        raise ValueError("required field list must not be empty")

    total = len(required)
    done = sum(1 for key in required if is_filled(answers.get(key)))

    for _, child in active_children(answers, rules):
        total += 1
        if is_filled(answers.get(child)):
            done += 1

    return int(math.floor(100 * done / total + 0.5))
