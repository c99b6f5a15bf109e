"""Raw JSON to typed rule tree."""

from typing import Any

from rules_engine.core.errors import MalformedNodeError, RuleDepthExceededError
from rules_engine.domain.enums import Operator
from rules_engine.domain.nodes import NO_RESULT, Condition, Constraint, Node, RuleReference
from rules_engine.engine.discovery import condition_type, is_constraint


def normalize_conditions(conditions: Any) -> list[Any]:
    """Wrap a bare condition in a single-element list."""
    return list(conditions) if isinstance(conditions, list | tuple) else [conditions]


def reference_root(conditions: Any) -> Any:
    """
    Single root node standing in for a referenced rule.

    A rule with several top-level conditions is satisfied when any of them is,
    so it is substituted by an ``any`` over them.
    """
    if isinstance(conditions, list | tuple):
        if len(conditions) == 1:
            return conditions[0]
        return {"any": list(conditions)}
    return conditions


def coerce_operator(raw: Any) -> Operator | str:
    """Map an operator string onto the enum, keeping unknown values as they are."""
    try:
        return Operator(raw)
    except (ValueError, TypeError):
        return raw


def parse_node(
    raw: Any, path: str = "$", depth: int = 0, max_depth: int | None = None
) -> Node:
    """
    Parse one raw node.

    Args:
        raw: Condition mapping, constraint mapping or rule id string
        path: JSONPath of ``raw`` (for error reporting)
        depth: Condition nesting depth of ``raw``; 0 for a top-level condition
        max_depth: Deepest condition nesting parsed; None for no ceiling

    Raises:
        MalformedNodeError: If the node is none of the three node kinds, or a
            condition branch is not a list
        RuleDepthExceededError: If conditions nest deeper than max_depth
    """
    if isinstance(raw, str):
        return RuleReference(raw)

    kind = condition_type(raw)
    if kind is not None:
        if max_depth is not None and depth > max_depth:
            raise RuleDepthExceededError(
                f"Condition nesting exceeds maximum depth of {max_depth} at {path}",
                details={"path": path, "max_depth": max_depth},
            )
        branch = raw[kind.value]
        if not isinstance(branch, list):
            raise MalformedNodeError(
                f"Condition branch '{kind.value}' is not a list at {path}",
                details={"path": path, "node": raw},
            )
        children = tuple(
            parse_node(child, f"{path}.{kind.value}[{i}]", depth + 1, max_depth)
            for i, child in enumerate(branch)
        )
        return Condition(kind=kind, children=children, result=raw.get("result", NO_RESULT))

    if is_constraint(raw):
        return Constraint(
            field=raw["field"], operator=coerce_operator(raw["operator"]), value=raw["value"]
        )

    raise MalformedNodeError(
        f"Node at {path} is neither a condition, a constraint nor a rule reference",
        details={"path": path, "node": raw},
    )


def parse_conditions(
    conditions: Any, path: str = "$.conditions", max_depth: int | None = None
) -> tuple[Node, ...]:
    """Parse a rule's ``conditions`` (single node or list) into root nodes."""
    return tuple(
        parse_node(raw, f"{path}[{i}]", 0, max_depth)
        for i, raw in enumerate(normalize_conditions(conditions))
    )
