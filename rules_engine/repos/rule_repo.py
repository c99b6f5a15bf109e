"""
Rule repository interface and an in-memory implementation.

The engine only consumes ``get_rule_by_id``; where the rules come from is
up to the caller. ``InMemoryRuleRepository`` accepts stored records in the
wire format, with ``conditions`` either as a tree or as serialized JSON text.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from rules_engine.core.errors import RuleNotFoundError
from rules_engine.domain.models import Rule

logger = logging.getLogger(__name__)


@runtime_checkable
class RuleRepository(Protocol):
    """Lookup of stored rules by identifier."""

    def get_rule_by_id(self, rule_id: str) -> Rule:
        """
        Return the stored rule.

        Raises:
            RuleNotFoundError: If no rule has this identifier
        """
        ...


def _coerce_rule(rule: Rule | Mapping[str, Any]) -> Rule:
    return rule if isinstance(rule, Rule) else Rule.model_validate(rule)


class InMemoryRuleRepository:
    """Dictionary-backed RuleRepository."""

    def __init__(self, rules: Iterable[Rule | Mapping[str, Any]] = ()) -> None:
        self._rules: dict[str, Rule] = {}
        for rule in rules:
            self.add(rule)

    @classmethod
    def from_json(cls, text: str) -> "InMemoryRuleRepository":
        """
        Build a repository from a JSON array of stored rule records.

        Example:
            >>> repo = InMemoryRuleRepository.from_json(
            ...     '[{"id": "adults", "conditions": {"all": ["over-18"]}}]'
            ... )
        """
        records = json.loads(text)
        if not isinstance(records, list):
            raise ValueError("Rule records must be a JSON array")
        return cls(records)

    def add(self, rule: Rule | Mapping[str, Any]) -> Rule:
        """Store a rule, replacing any rule with the same id."""
        stored = _coerce_rule(rule)
        if not stored.id:
            raise ValueError("A stored rule must have an id")
        if stored.id in self._rules:
            logger.info("Replacing stored rule %s", stored.id)
        self._rules[stored.id] = stored
        return stored

    def get_rule_by_id(self, rule_id: str) -> Rule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(
                f"Invalid rule reference. {rule_id} does not reference any known rule.",
                details={"rule_id": rule_id},
            )
        return rule

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)


def get_conditions_by_rule_id(repository: RuleRepository, rule_id: str) -> Any:
    """Return a stored rule's conditions, or an empty mapping when the id is unknown."""
    try:
        return repository.get_rule_by_id(rule_id).conditions
    except RuleNotFoundError:
        logger.debug("No rule with id %s; returning empty conditions", rule_id)
        return {}
