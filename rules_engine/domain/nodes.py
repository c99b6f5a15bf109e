"""
Typed rule tree.

A rule's raw JSON is parsed into these nodes before evaluation so that the
evaluator dispatches on node type instead of probing dictionary keys:

    Node = Condition | Constraint | RuleReference

Rule references stay unresolved in the tree; the evaluator fetches the
referenced rule when it reaches one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from rules_engine.domain.enums import ConditionType, Operator


class _NoResult:
    def __repr__(self) -> str:
        return "NO_RESULT"


# Distinguishes "no result key" from an explicit ``"result": null``
NO_RESULT: Any = _NoResult()


@dataclass(frozen=True)
class RuleReference:
    """String node standing in for another stored rule's conditions."""

    rule_id: str


@dataclass(frozen=True)
class Constraint:
    """Leaf comparing one criteria field to a literal value."""

    field: str
    # Unknown operator strings are kept verbatim; they evaluate to False
    operator: Operator | str
    value: Any


@dataclass(frozen=True)
class Condition:
    """any/all/none aggregation over child nodes."""

    kind: ConditionType
    children: tuple[Node, ...]
    result: Any = NO_RESULT

    @property
    def has_result(self) -> bool:
        return self.result is not NO_RESULT


Node = Union[Condition, Constraint, RuleReference]


def to_wire(node: Node) -> Any:
    """Render a typed node back to its JSON wire shape."""
    if isinstance(node, RuleReference):
        return node.rule_id

    if isinstance(node, Constraint):
        operator = node.operator.value if isinstance(node.operator, Operator) else node.operator
        return {"field": node.field, "operator": operator, "value": node.value}

    wire: dict[str, Any] = {node.kind.value: [to_wire(child) for child in node.children]}
    if node.has_result:
        wire["result"] = node.result
    return wire
