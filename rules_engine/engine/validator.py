"""
Condition Tree Validation for Rules.

Checks that a rule's condition tree is structurally correct and that every
constraint is well-formed:
- Each condition has exactly one non-empty any/all/none list
- Only the outermost condition carries a result
- Every child is a condition, a constraint or a resolvable rule reference
- Constraint fields are strings and operators are known
- Set operators get a list and match operators get a valid pattern

Defects are reported, not raised: validate() returns a ValidationResult
holding the first error found. Failed rule lookups, reference cycles and
runaway nesting are not defects of the rule itself and do raise.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from rules_engine.core.errors import RuleDepthExceededError
from rules_engine.domain.enums import LIST_OPERATORS, OPERATOR_VALUES, PATTERN_OPERATORS
from rules_engine.domain.models import Rule, ValidationResult
from rules_engine.engine.discovery import (
    branch_keys,
    condition_type,
    is_condition,
    is_constraint,
    is_object,
)
from rules_engine.engine.operators import stringify
from rules_engine.engine.parser import normalize_conditions
from rules_engine.engine.references import ReferenceResolver, Trail, root_trail
from rules_engine.repos.rule_repo import RuleRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

RULE_NOT_OBJECT = "Rule must be a valid object"
EMPTY_CONDITIONS = "Conditions must contain at least one condition"
INVALID_CONDITION = "Invalid condition structure"
MULTIPLE_BRANCHES = "A condition cannot have more than one 'any', 'all' or 'none' property"
NOT_A_NODE = "Each node must be a condition or constraint"
NESTED_RESULT = "Nested conditions cannot have a result property"
FIELD_NOT_STRING = "Constraint field must be a string"


class Validator:
    """
    Validates rules before evaluation.

    Args:
        repository: Source of rules named by string references
        max_depth: Deepest condition nesting accepted, references included
    """

    def __init__(
        self, repository: RuleRepository | None = None, max_depth: int = DEFAULT_MAX_DEPTH
    ) -> None:
        self._references = ReferenceResolver(repository)
        self.max_depth = max_depth

    def validate(self, rule: Rule | Mapping[str, Any] | Any) -> ValidationResult:
        """
        Validate a rule's condition tree.

        Every top-level condition is visited; the result is valid only if all
        of them are, and carries the first error seen.

        Raises:
            RuleNotFoundError: If a string reference names an unknown rule
            RuleReferenceCycleError: If references loop back on themselves
            RuleDepthExceededError: If nesting exceeds max_depth

        Example:
            >>> Validator().validate({"conditions": {"any": [], "all": []}}).error.message
            "A condition cannot have more than one 'any', 'all' or 'none' property"
        """
        if isinstance(rule, Rule):
            rule = rule.to_wire()

        if not is_object(rule):
            return ValidationResult.fail(RULE_NOT_OBJECT, rule)

        conditions = normalize_conditions(rule.get("conditions"))
        if not conditions or (is_object(conditions[0]) and not conditions[0]):
            return ValidationResult.fail(EMPTY_CONDITIONS, rule, "$.conditions")

        trail = root_trail(rule)
        result = ValidationResult.ok()
        for i, condition in enumerate(conditions):
            sub_result = self._validate_condition(condition, 0, f"$.conditions[{i}]", trail)
            result = result.merge(sub_result)

        if not result.is_valid and result.error is not None:
            error = result.error
            logger.debug("Rule failed validation at %s: %s", error.path, error.message)
        return result

    def _validate_condition(
        self, condition: Any, depth: int, path: str, trail: Trail
    ) -> ValidationResult:
        """
        Recursively validate a condition node.

        Args:
            condition: Raw condition, or a rule id string
            depth: Nesting depth; 0 for a top-level condition
            path: JSONPath to the node (for error reporting)
            trail: Rule ids followed to reach the node
        """
        if depth > self.max_depth:
            raise RuleDepthExceededError(
                f"Condition nesting exceeds maximum depth of {self.max_depth} at {path}",
                details={"path": path, "max_depth": self.max_depth},
            )

        if isinstance(condition, str):
            rule_id = condition
            condition, trail = self._references.resolve(rule_id, trail)
            path = f"{path}->{rule_id}"

        if not is_condition(condition):
            return ValidationResult.fail(INVALID_CONDITION, condition, path)

        if len(branch_keys(condition)) > 1:
            return ValidationResult.fail(MULTIPLE_BRANCHES, condition, path)

        kind = condition_type(condition).value
        branch = condition[kind]

        if not isinstance(branch, list):
            return ValidationResult.fail(
                f"Condition branch '{kind}' must be iterable", condition, path
            )

        if not branch:
            return ValidationResult.fail(
                f"Condition branch '{kind}' must contain at least one node", condition, path
            )

        if depth > 0 and "result" in condition:
            return ValidationResult.fail(NESTED_RESULT, condition, path)

        result = ValidationResult.ok()
        for i, node in enumerate(branch):
            node_path = f"{path}.{kind}[{i}]"
            node_trail = trail

            if isinstance(node, str):
                rule_id = node
                node, node_trail = self._references.resolve(rule_id, trail)
                node_path = f"{node_path}->{rule_id}"

            if is_condition(node):
                sub_result = self._validate_condition(node, depth + 1, node_path, node_trail)
            elif is_constraint(node):
                sub_result = self._validate_constraint(node, node_path)
            else:
                return ValidationResult.fail(NOT_A_NODE, node, node_path)

            result = result.merge(sub_result)

            # First failure ends this branch
            if not result.is_valid:
                break

        return result

    def _validate_constraint(self, constraint: Mapping[str, Any], path: str) -> ValidationResult:
        """
        Validate a leaf constraint.

        Checks:
        1. Field is a string
        2. Operator is a known operator
        3. Set operators carry a list value
        4. Match operators carry a compilable pattern
        """
        field = constraint["field"]
        operator = constraint["operator"]
        value = constraint["value"]

        if not isinstance(field, str):
            return ValidationResult.fail(FIELD_NOT_STRING, constraint, path)

        if not isinstance(operator, str) or operator not in OPERATOR_VALUES:
            return ValidationResult.fail(
                f"Constraint operator {operator!r} is not supported", constraint, path
            )

        if operator in LIST_OPERATORS and not isinstance(value, list):
            return ValidationResult.fail(
                f"Constraint value must be a list when the operator is '{operator}'",
                constraint,
                path,
            )

        if operator in PATTERN_OPERATORS:
            try:
                re.compile(stringify(value))
            except re.error:
                return ValidationResult.fail(
                    f"Constraint value must be a valid regular expression when the operator "
                    f"is '{operator}'",
                    constraint,
                    path,
                )

        return ValidationResult.ok()
