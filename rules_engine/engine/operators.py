"""
Constraint operators.

Each operator compares ``criterion`` (the value resolved from the criteria
record) with ``value`` (the literal stored on the constraint).

Comparison semantics follow the JSON data model rather than Python's:
- equality is strict: ``True`` never equals ``1``, ``2`` equals ``2.0``
- orderings between incomparable types are simply False
- ``matches`` takes its pattern from the criterion and its subject from the
  constraint value, stringified the way JSON renders scalars
"""

import json
import logging
import operator as _op
import re
from collections.abc import Callable, Mapping
from functools import lru_cache
from typing import Any

from rules_engine.domain.enums import PRESENCE_OPERATORS, Operator
from rules_engine.domain.nodes import Constraint
from rules_engine.engine.discovery import MISSING, resolve_field
from rules_engine.engine.parser import coerce_operator

logger = logging.getLogger(__name__)

IsEmpty = Callable[[Any], bool]
ReportError = Callable[[str, dict[str, Any]], None]

_compile_pattern = lru_cache(maxsize=256)(re.compile)


def is_empty(value: Any) -> bool:
    """
    Default emptiness predicate.

    Empty: absent, None, "", and empty lists/tuples/mappings/sets.
    Not empty: 0, 0.0 and False.
    """
    if value is MISSING or value is None:
        return True
    if isinstance(value, str | list | tuple | set | frozenset | Mapping):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Type-aware equality over JSON values."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, list | tuple) and isinstance(right, list | tuple):
        return len(left) == len(right) and all(
            strict_equals(a, b) for a, b in zip(left, right, strict=True)
        )
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(
            strict_equals(left[key], right[key]) for key in left
        )
    return type(left) is type(right) and left == right


def strict_contains(sequence: Any, item: Any) -> bool:
    """Membership test using strict_equals; False when ``sequence`` is not a list."""
    if not isinstance(sequence, list | tuple):
        return False
    return any(strict_equals(member, item) for member in sequence)


def stringify(value: Any) -> str:
    """Render a value the way a JSON/JS runtime would when coercing to a string."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list | tuple):
        return ",".join("" if item is None else stringify(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def _ordering(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(criterion: Any, value: Any) -> bool:
        if isinstance(criterion, bool) != isinstance(value, bool):
            return False
        try:
            return bool(compare(criterion, value))
        except TypeError:
            return False

    return check


def _contains_any(criterion: Any, value: Any) -> bool:
    if not isinstance(value, list | tuple):
        return False
    return any(strict_contains(criterion, item) for item in value)


_OPERATOR_CHECKS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQUALS: strict_equals,
    Operator.DOES_NOT_EQUAL: lambda criterion, value: not strict_equals(criterion, value),
    Operator.GREATER_THAN: _ordering(_op.gt),
    Operator.GREATER_THAN_OR_EQUAL: _ordering(_op.ge),
    Operator.LESS_THAN: _ordering(_op.lt),
    Operator.LESS_THAN_OR_EQUAL: _ordering(_op.le),
    Operator.IN: lambda criterion, value: strict_contains(value, criterion),
    Operator.NOT_IN: lambda criterion, value: not strict_contains(value, criterion),
    Operator.CONTAINS: lambda criterion, value: strict_contains(criterion, value),
    Operator.NOT_CONTAINS: lambda criterion, value: not strict_contains(criterion, value),
    Operator.CONTAINS_ANY: _contains_any,
    Operator.NOT_CONTAINS_ANY: lambda criterion, value: not _contains_any(criterion, value),
}


def _matches(criterion: Any, value: Any, report_error: ReportError | None) -> bool | None:
    """Search ``value`` with the pattern held by ``criterion``; None if the pattern is invalid."""
    pattern = stringify(criterion)
    try:
        compiled = _compile_pattern(pattern)
    except re.error as e:
        context = {"pattern": pattern, "error": str(e)}
        if report_error is not None:
            report_error("Criterion is not a valid regular expression", context)
        else:
            logger.warning("Criterion is not a valid regular expression: %s (%s)", pattern, e)
        return None
    return compiled.search(stringify(value)) is not None


def check_constraint(
    constraint: Constraint | Mapping[str, Any],
    criteria: Any,
    is_empty: IsEmpty = is_empty,
    report_error: ReportError | None = None,
) -> bool:
    """
    Decide whether ``criteria`` satisfies one constraint.

    An absent field fails every operator except exists/does not exist,
    which test presence themselves.

    Args:
        constraint: Typed constraint, or its raw mapping
        criteria: Criteria record the field is resolved against
        is_empty: Emptiness predicate for exists/does not exist
        report_error: Sink for runtime problems such as an invalid pattern

    Returns:
        True when the constraint holds
    """
    if isinstance(constraint, Mapping):
        constraint = Constraint(
            field=constraint["field"],
            operator=coerce_operator(constraint["operator"]),
            value=constraint["value"],
        )

    operator = constraint.operator
    if not isinstance(operator, Operator):
        logger.warning("Unknown constraint operator: %r", operator)
        return False

    criterion = resolve_field(constraint.field, criteria)

    if operator in PRESENCE_OPERATORS:
        present = criterion is not MISSING and not is_empty(criterion)
        return present if operator == Operator.EXISTS else not present

    if criterion is MISSING:
        return False

    if operator in (Operator.MATCHES, Operator.DOES_NOT_MATCH):
        matched = _matches(criterion, constraint.value, report_error)
        if matched is None:
            return False
        return matched if operator == Operator.MATCHES else not matched

    return _OPERATOR_CHECKS[operator](criterion, constraint.value)
