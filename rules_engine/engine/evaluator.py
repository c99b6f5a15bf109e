"""
Rule evaluation.

Walks a rule's typed condition tree against a criteria record. Top-level
conditions are tried in order and the first one satisfied decides the
outcome: its boolean ``result`` when it has one, else True. When none is
satisfied the outcome is False.

The evaluator expects a rule that passed Validator.validate; anything the
validator would have rejected is raised as a ContractViolationError instead
of being folded into False.
"""

import logging
from collections.abc import Mapping
from typing import Any

from rules_engine.core.errors import (
    ContractViolationError,
    MalformedNodeError,
    RuleDepthExceededError,
)
from rules_engine.core.observability import report_error as default_report_error
from rules_engine.domain.enums import ConditionType
from rules_engine.domain.models import Rule
from rules_engine.domain.nodes import Condition, Constraint, Node, RuleReference
from rules_engine.engine.discovery import is_object
from rules_engine.engine.operators import IsEmpty, ReportError, check_constraint, is_empty
from rules_engine.engine.parser import parse_conditions, parse_node
from rules_engine.engine.references import ReferenceResolver, Trail, root_trail
from rules_engine.engine.validator import DEFAULT_MAX_DEPTH
from rules_engine.repos.rule_repo import RuleRepository

logger = logging.getLogger(__name__)


class Evaluator:
    """
    Evaluates rules against criteria.

    Args:
        repository: Source of rules named by string references
        is_empty: Emptiness predicate used by exists/does not exist
        report_error: Sink for runtime problems that do not abort evaluation
        max_depth: Deepest condition nesting followed, references included
    """

    def __init__(
        self,
        repository: RuleRepository | None = None,
        is_empty: IsEmpty = is_empty,
        report_error: ReportError = default_report_error,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._references = ReferenceResolver(repository)
        self.is_empty = is_empty
        self.report_error = report_error
        self.max_depth = max_depth

    def evaluate(self, rule: Rule | Mapping[str, Any], criteria: Any) -> bool | list[bool]:
        """
        Evaluate a rule against one criteria record or a list of them.

        A list of criteria yields a list of outcomes in the same order; each
        record is evaluated on its own.

        Raises:
            RuleNotFoundError: If a string reference names an unknown rule
            RuleReferenceCycleError: If references loop back on themselves
            RuleDepthExceededError: If nesting exceeds max_depth
            ContractViolationError: If the tree is not a valid rule tree
        """
        if isinstance(rule, Rule):
            rule = rule.to_wire()
        if not is_object(rule):
            raise ContractViolationError("Rule must be a valid object", details={"rule": rule})

        roots = parse_conditions(rule.get("conditions"), max_depth=self.max_depth)
        trail = root_trail(rule)

        if isinstance(criteria, list | tuple):
            return [self._evaluate_rule(roots, record, trail) for record in criteria]
        return self._evaluate_rule(roots, criteria, trail)

    def _evaluate_rule(self, roots: tuple[Node, ...], criteria: Any, trail: Trail) -> bool:
        for i, root in enumerate(roots):
            node, node_trail = self._resolve(root, trail, f"$.conditions[{i}]", 0)

            if not isinstance(node, Condition):
                raise MalformedNodeError(
                    f"Top-level node $.conditions[{i}] is not a condition",
                    details={"path": f"$.conditions[{i}]"},
                )

            if self._evaluate_condition(node, criteria, 0, node_trail):
                return node.result if isinstance(node.result, bool) else True

        return False

    def _resolve(
        self, node: Node, trail: Trail, path: str, depth: int
    ) -> tuple[Node, Trail]:
        """Replace a RuleReference with the referenced rule's root node."""
        if not isinstance(node, RuleReference):
            return node, trail
        raw, trail = self._references.resolve(node.rule_id, trail)
        return parse_node(raw, f"{path}->{node.rule_id}", depth, self.max_depth), trail

    def _evaluate_condition(
        self, condition: Condition, criteria: Any, depth: int, trail: Trail
    ) -> bool:
        """
        Fold a condition's children.

        any: OR seeded False. all: AND seeded True. none: AND of negations
        seeded True. Every child reference is resolved; evaluation of the
        remaining children stops once the outcome is decided.
        """
        if depth > self.max_depth:
            raise RuleDepthExceededError(
                f"Condition nesting exceeds maximum depth of {self.max_depth}",
                details={"max_depth": self.max_depth, "trail": list(trail)},
            )

        kind = condition.kind
        result = kind in (ConditionType.ALL, ConditionType.NONE)

        for child in condition.children:
            node, node_trail = self._resolve(child, trail, "$", depth + 1)

            if not isinstance(node, Condition | Constraint):
                raise MalformedNodeError(
                    "Invalid node type in condition", details={"node": repr(node)}
                )

            decided = result if kind is ConditionType.ANY else not result
            if decided:
                continue

            if isinstance(node, Condition):
                holds = self._evaluate_condition(node, criteria, depth + 1, node_trail)
            else:
                holds = check_constraint(node, criteria, self.is_empty, self.report_error)

            result = not holds if kind is ConditionType.NONE else holds

        return result
