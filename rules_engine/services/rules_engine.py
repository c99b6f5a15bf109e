"""
Rules engine facade.

Composes the Validator and the Evaluator: every evaluation is preceded by
validation, and rules may be passed by identifier and fetched from the
rule repository.

Failure discipline: evaluate() on an invalid rule reports the defect through
the error sink and raises InvalidRuleError. It never returns a boolean for a
rule that failed validation. Callers that prefer to branch on the outcome
call validate() first and inspect the ValidationResult.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any

from rules_engine.core.config import Settings, get_settings
from rules_engine.core.errors import InvalidRuleError, RuleNotFoundError
from rules_engine.core.observability import metrics, report_error, rule_context
from rules_engine.domain.models import Rule, ValidationResult
from rules_engine.engine.evaluator import Evaluator
from rules_engine.engine.operators import IsEmpty, ReportError, is_empty
from rules_engine.engine.validator import Validator
from rules_engine.repos.rule_repo import RuleRepository, get_conditions_by_rule_id

logger = logging.getLogger(__name__)

RuleInput = Rule | Mapping[str, Any] | str


def _rule_id(rule: Any) -> str | None:
    if isinstance(rule, Rule):
        return rule.id
    if isinstance(rule, Mapping) and isinstance(rule.get("id"), str):
        return rule["id"]
    return None


class RulesEngine:
    """
    Validates and evaluates rules.

    Args:
        repository: Rule source for rule ids and string references
        settings: Engine settings (defaults to the process-wide settings)
        is_empty: Emptiness predicate for exists/does not exist
        report_error: Sink for failures surfaced outside the return value

    Example:
        >>> engine = RulesEngine()
        >>> rule = {"conditions": {"all": [
        ...     {"field": "pushEnabled", "operator": "equals", "value": False}
        ... ]}}
        >>> engine.evaluate(rule, {"pushEnabled": False})
        True
    """

    def __init__(
        self,
        repository: RuleRepository | None = None,
        *,
        settings: Settings | None = None,
        is_empty: IsEmpty = is_empty,
        report_error: ReportError = report_error,
    ) -> None:
        self.repository = repository
        self.settings = settings or get_settings()
        self._report_error = report_error
        self._validator = Validator(repository, max_depth=self.settings.max_depth)
        self._evaluator = Evaluator(
            repository,
            is_empty=is_empty,
            report_error=report_error,
            max_depth=self.settings.max_depth,
        )

    def _load(self, rule: RuleInput) -> Rule | Mapping[str, Any] | Any:
        """Fetch a rule given by id; other inputs pass through."""
        if not isinstance(rule, str):
            return rule
        if self.repository is None:
            raise RuleNotFoundError(
                f"Rule {rule} cannot be loaded without a rule repository.",
                details={"rule_id": rule},
            )
        return self.repository.get_rule_by_id(rule)

    def validate(self, rule: RuleInput) -> ValidationResult:
        """
        Validate a rule, or the stored rule with the given id.

        Raises:
            RuleNotFoundError: If the rule or a rule it references is unknown
            RuleReferenceCycleError: If references loop back on themselves
            RuleDepthExceededError: If nesting exceeds the configured maximum
        """
        loaded = self._load(rule)
        with rule_context(_rule_id(loaded)):
            result = self._validator.validate(loaded)

        if self.settings.metrics_enabled:
            metrics.record_validation(result.is_valid)
        return result

    def evaluate(self, rule: RuleInput, criteria: Any) -> bool | list[bool]:
        """
        Validate, then evaluate a rule against one or more criteria records.

        Args:
            rule: Rule, raw rule mapping or stored rule id
            criteria: Criteria record, or a list of records evaluated independently

        Returns:
            The outcome, or a list of outcomes in criteria order

        Raises:
            InvalidRuleError: If the rule fails validation
            RuleNotFoundError: If the rule or a rule it references is unknown
            RuleReferenceCycleError: If references loop back on themselves
            RuleDepthExceededError: If nesting exceeds the configured maximum
        """
        start_time = time.perf_counter()
        rule_id = rule if isinstance(rule, str) else _rule_id(rule)

        try:
            loaded = self._load(rule)
            validation = self.validate(loaded)
            if not validation.is_valid:
                self._report_error(
                    "Rule is not valid",
                    {"rule_id": rule_id, "validation": validation.to_wire()},
                )
                raise InvalidRuleError(
                    "Rule is not valid",
                    details={"rule_id": rule_id, "validation": validation},
                )

            with rule_context(rule_id):
                outcome = self._evaluator.evaluate(loaded, criteria)

        except InvalidRuleError:
            self._record_evaluation("invalid", start_time)
            raise
        except Exception:
            self._record_evaluation("error", start_time)
            raise

        if isinstance(outcome, list):
            self._record_evaluation("batch", start_time)
        else:
            self._record_evaluation("matched" if outcome else "unmatched", start_time)

        logger.debug("Evaluated rule %s: %s", rule_id or "<inline>", outcome)
        return outcome

    def get_conditions_by_rule_id(self, rule_id: str) -> Any:
        """Conditions of a stored rule, or an empty mapping when it is unknown."""
        if self.repository is None:
            return {}
        return get_conditions_by_rule_id(self.repository, rule_id)

    def _record_evaluation(self, outcome: str, start_time: float) -> None:
        if self.settings.metrics_enabled:
            metrics.record_evaluation(outcome, time.perf_counter() - start_time)
