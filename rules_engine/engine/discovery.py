"""
Node discovery helpers.

Pure functions that classify raw JSON values found in a rule tree and
resolve dotted field paths against a criteria record. Nothing here raises
on malformed input; callers decide what an unclassified node means.
"""

from collections.abc import Mapping
from typing import Any

from rules_engine.domain.enums import ConditionType

CONSTRAINT_KEYS = ("field", "operator", "value")


class _Missing:
    """Marker for a field that is absent from the criteria (not merely None)."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def is_object(obj: Any) -> bool:
    """True for a mapping; lists, strings and None are not objects."""
    return isinstance(obj, Mapping)


def condition_type(node: Any) -> ConditionType | None:
    """
    Return the branch of a condition node.

    Precedence is any, then all, then none. Returns None when the node is
    not a mapping or carries none of the three keys.
    """
    if not is_object(node):
        return None
    for kind in ConditionType:
        if kind.value in node:
            return kind
    return None


def is_condition(obj: Any) -> bool:
    """True when ``obj`` carries at least one of any/all/none."""
    return condition_type(obj) is not None


def branch_keys(obj: Mapping[str, Any]) -> list[str]:
    """All condition branch keys present on ``obj``, in precedence order."""
    return [kind.value for kind in ConditionType if kind.value in obj]


def is_constraint(obj: Any) -> bool:
    """True when ``obj`` has field, operator and value keys."""
    return is_object(obj) and all(key in obj for key in CONSTRAINT_KEYS)


def resolve_nested_property(path: str, record: Any) -> Any:
    """
    Resolve a dotted path such as ``"user.address.city"`` against ``record``.

    All-digit segments index into lists. Returns MISSING as soon as a segment
    cannot be followed.

    Example:
        >>> resolve_nested_property("a.b", {"a": {"b": 1}})
        1
        >>> resolve_nested_property("a.x", {"a": {"b": 1}})
        MISSING
    """
    current = record
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def resolve_field(field: str, record: Any) -> Any:
    """Look up a constraint field: dotted path when it contains '.', else a direct key."""
    if not isinstance(field, str):
        return MISSING
    if "." in field:
        return resolve_nested_property(field, record)
    if isinstance(record, Mapping) and field in record:
        return record[field]
    return MISSING
