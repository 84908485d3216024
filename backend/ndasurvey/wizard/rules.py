# ndasurvey/wizard/rules.py
"""
Questionnaire field rules.

Conditional follow-up fields are declared once here and read by both the
progress calculator and the admin review display.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Tuple

# Answer values of the yes/no/partially radio groups
YES = "Да"
NO = "Не"
PARTIALLY = "Делумно"
OTHER = "Друго"

ANSWER_OPTIONS = (YES, NO, PARTIALLY)

# Top-level questionnaire fields (not questions)
BANK_INFO_FIELDS = (
    "bankName",
    "fillDate",
    "contactPersonName",
    "contactPersonPosition",
    "contactPersonEmail",
)
COMMENTS_FIELD = "additionalComments"

REQUIRED_FIELDS: Tuple[str, ...] = BANK_INFO_FIELDS + ("q1_1", "q1_2")


@dataclass(frozen=True)
class ConditionalRule:
    question: str
    enabling_values: FrozenSet[str]
    children: Tuple[str, ...]

    def is_active(self, answers: Mapping[str, Any]) -> bool:
        value = answers.get(self.question)
        return isinstance(value, str) and value in self.enabling_values


def _rule(question: str, enabling, children) -> Tuple[str, ConditionalRule]:
    return question, ConditionalRule(question, frozenset(enabling), tuple(children))


CONDITIONAL_RULES: Dict[str, ConditionalRule] = dict([
    _rule("q1_1", (YES, PARTIALLY), ("q1_1_status", "q1_1_date")),
    _rule("q1_2", (YES, PARTIALLY), ("q1_2_freq",)),
    _rule("q1_2_freq", (OTHER,), ("q1_2_freq_other_text",)),
])


def conditional_keys(rules: Mapping[str, ConditionalRule] = CONDITIONAL_RULES) -> FrozenSet[str]:
    """Every key that only exists as a follow-up of another answer."""
    return frozenset(child for rule in rules.values() for child in rule.children)


def active_children(answers: Mapping[str, Any],
                    rules: Mapping[str, ConditionalRule] = CONDITIONAL_RULES
                    ) -> Iterator[Tuple[str, str]]:
    """
    Yield ``(question, child)`` for every follow-up field currently unlocked.

    A rule whose question is itself a follow-up only fires when that
    follow-up is unlocked, so nested rules never leak through an inactive
    parent.
    """
    nested = conditional_keys(rules)
    unlocked = set()
    pending = [q for q in rules if q not in nested]
    while pending:
        question = pending.pop(0)
        rule = rules[question]
        if not rule.is_active(answers):
            continue
        for child in rule.children:
            if child in unlocked:
                continue
            unlocked.add(child)
            yield question, child
            if child in rules:
                pending.append(child)
