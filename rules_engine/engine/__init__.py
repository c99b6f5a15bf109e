"""
Condition-tree engine for rules.

Key Components:
- discovery: classifies raw nodes and resolves dotted field paths
- validator: reports the first structural or constraint defect of a rule
- evaluator: walks a validated rule against criteria records
- operators: constraint operator semantics
- canonicalizer: deterministic JSON for stored rule definitions

Design Principles:
- Purity: evaluation depends only on the rule, the criteria and the repository
- Explicitness: invalid trees are reported or raised, never guessed at
- Bounded recursion: reference cycles and runaway nesting raise
"""

from rules_engine.engine.canonicalizer import canonicalize_json, rule_to_json
from rules_engine.engine.evaluator import Evaluator
from rules_engine.engine.operators import check_constraint, is_empty
from rules_engine.engine.validator import Validator

__all__ = [
    "Evaluator",
    "Validator",
    "canonicalize_json",
    "check_constraint",
    "is_empty",
    "rule_to_json",
]
