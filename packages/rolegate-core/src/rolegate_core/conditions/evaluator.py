"""Condition evaluation against an access context.

Every failure mode evaluates to False: unknown operators, unresolved
references, absent fields, incomparable types and bad patterns never
satisfy a condition. The single exception is ``ne`` on an absent field,
which holds because an absent value is not equal to anything.
"""

from __future__ import annotations

import logging
import operator
import re
from collections.abc import Callable, Iterable
from typing import Any

from rolegate_core.conditions.references import resolve_field, resolve_value
from rolegate_core.policy.context import MISSING, AccessContext
from rolegate_core.policy.models import Condition

logger = logging.getLogger(__name__)

_COLLECTIONS = (list, tuple, set, frozenset)


def _eq(actual: Any, expected: Any) -> bool:
    return actual is not MISSING and actual == expected


def _ne(actual: Any, expected: Any) -> bool:
    return actual is MISSING or actual != expected


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if actual is MISSING or actual is None or expected is None:
            return False
        try:
            return bool(compare(actual, expected))
        except TypeError:
            return False

    return check


def _membership(actual: Any, expected: Any) -> bool | None:
    """``actual in expected``, or None when the test cannot be made."""
    if not isinstance(expected, _COLLECTIONS) or actual is MISSING:
        return None
    try:
        return actual in expected
    except TypeError:
        return None


def _in(actual: Any, expected: Any) -> bool:
    return _membership(actual, expected) is True


def _nin(actual: Any, expected: Any) -> bool:
    return _membership(actual, expected) is False


def _contains(actual: Any, expected: Any) -> bool:
    if actual is MISSING or actual is None:
        return False
    try:
        return expected in actual
    except TypeError:
        return False


def _regex(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, str) or not isinstance(expected, str):
        return False
    try:
        return re.search(expected, actual) is not None
    except re.error as exc:
        logger.warning("Invalid regex %r in condition: %s", expected, exc)
        return False


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": _eq,
    "ne": _ne,
    "gt": _ordered(operator.gt),
    "gte": _ordered(operator.ge),
    "lt": _ordered(operator.lt),
    "lte": _ordered(operator.le),
    "in": _in,
    "nin": _nin,
    "contains": _contains,
    "regex": _regex,
}

SUPPORTED_OPERATORS = frozenset(_OPERATORS)


def evaluate_condition(condition: Condition, context: AccessContext) -> bool:
    check = _OPERATORS.get(condition.operator)
    if check is None:
        logger.warning(
            "Unknown operator %r on field %r; condition not satisfied",
            condition.operator,
            condition.field,
        )
        return False

    expected = resolve_value(condition.value, context)
    if expected is MISSING:
        logger.debug("Unresolved reference %s on field %r", condition.value, condition.field)
        return False

    actual = resolve_field(condition.field, context)
    return check(actual, expected)


def evaluate_conditions(conditions: Iterable[Condition], context: AccessContext) -> bool:
    """True when every condition holds (AND). An empty list holds."""
    return all(evaluate_condition(c, context) for c in conditions)
