"""Rule reference resolution shared by the validator and the evaluator."""

import logging
from collections.abc import Mapping
from typing import Any

from rules_engine.core.errors import RuleNotFoundError, RuleReferenceCycleError
from rules_engine.engine.parser import reference_root
from rules_engine.repos.rule_repo import RuleRepository

logger = logging.getLogger(__name__)

# Chain of rule ids followed to reach the current node
Trail = tuple[str, ...]


class ReferenceResolver:
    """
    Follows string references through a RuleRepository.

    The trail holds the ids on the current path only, so a rule referenced
    twice from sibling branches is fine; only a path that revisits an id is
    a cycle.
    """

    def __init__(self, repository: RuleRepository | None) -> None:
        self.repository = repository

    def resolve(self, rule_id: str, trail: Trail) -> tuple[Any, Trail]:
        """
        Fetch the raw root node of the referenced rule.

        Returns:
            (root node, trail extended with ``rule_id``)

        Raises:
            RuleReferenceCycleError: If ``rule_id`` is already on the trail
            RuleNotFoundError: If the repository does not know ``rule_id``
        """
        if rule_id in trail:
            cycle = [*trail, rule_id]
            raise RuleReferenceCycleError(
                f"Rule reference cycle: {' -> '.join(cycle)}", details={"cycle": cycle}
            )

        if self.repository is None:
            raise RuleNotFoundError(
                f"Invalid rule reference. {rule_id} cannot be resolved without a rule repository.",
                details={"rule_id": rule_id},
            )

        rule = self.repository.get_rule_by_id(rule_id)
        logger.debug("Resolved rule reference %s", rule_id)
        return reference_root(rule.conditions), (*trail, rule_id)


def root_trail(rule: Any) -> Trail:
    """Seed trail for a rule: its own id, when it has one."""
    rule_id = rule.get("id") if isinstance(rule, Mapping) else None
    return (rule_id,) if isinstance(rule_id, str) and rule_id else ()
