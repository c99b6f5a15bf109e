"""
Domain-specific exceptions for the rules engine.

Structural defects in a rule are never raised: the validator reports them
through a ValidationResult. The exceptions below cover the failures that
must abort a validate/evaluate call instead.
"""

from typing import Any


class RulesEngineError(Exception):
    """Base exception for all rules engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(RulesEngineError):
    """Raised when a requested resource does not exist."""

    pass


class RuleNotFoundError(NotFoundError):
    """
    Raised when a rule identifier does not reference any known rule.

    Examples:
    - String node inside a condition naming an unknown rule
    - Engine.validate("unknown-id")
    """

    pass


class InvalidRuleError(RulesEngineError):
    """
    Raised when evaluate() is called with a rule that fails validation.

    The ValidationResult is available in ``details["validation"]``.
    """

    pass


class RuleReferenceError(RulesEngineError):
    """Base class for failures while following rule references."""

    pass


class RuleReferenceCycleError(RuleReferenceError):
    """
    Raised when a rule reference points (transitively) back to itself.

    ``details["cycle"]`` holds the chain of rule ids that closed the loop.
    """

    pass


class RuleDepthExceededError(RuleReferenceError):
    """Raised when condition nesting (including references) exceeds max_depth."""

    pass


class ContractViolationError(RulesEngineError):
    """
    Raised when the evaluator meets input the validator should have rejected.

    Reaching this means evaluate was handed an unvalidated tree.
    """

    pass


class MalformedNodeError(ContractViolationError):
    """Raised when a tree node is neither a condition, a constraint nor a reference."""

    pass
