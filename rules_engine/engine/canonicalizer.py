"""
JSON canonicalization for rule definitions.

A rule serialized here is byte-for-byte identical for the same tree, which
makes stored definitions diffable and hashable. Parsing the output back
yields a structurally identical rule.
"""

import hashlib
import json
from typing import Any

from rules_engine.domain.models import Rule


def canonicalize_json(obj: Any) -> Any:
    """
    Produce a deterministic representation of a JSON value.

    Mapping keys are sorted at every level. List order is preserved: the
    order of children in an any/all/none branch and of top-level conditions
    is meaningful.

    Example:
        >>> canonicalize_json({"z": 1, "a": {"c": 2, "b": 3}})
        {'a': {'b': 3, 'c': 2}, 'z': 1}
    """
    if isinstance(obj, dict):
        return {k: canonicalize_json(v) for k, v in sorted(obj.items())}

    elif isinstance(obj, list | tuple):
        return [canonicalize_json(item) for item in obj]

    else:
        return obj


def to_canonical_json_string(obj: Any) -> str:
    """
    Serialize with sorted keys and no extra whitespace.

    Example:
        >>> to_canonical_json_string({"operator": "equals", "field": "age", "value": 18})
        '{"field":"age","operator":"equals","value":18}'
    """
    return json.dumps(
        canonicalize_json(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def rule_to_json(rule: Rule) -> str:
    """Serialize a rule to canonical wire JSON."""
    return to_canonical_json_string(rule.to_wire())


def rule_from_json(text: str) -> Rule:
    """Parse wire JSON produced by rule_to_json (or any rule record)."""
    return Rule.model_validate_json(text)


def rule_fingerprint(rule: Rule) -> str:
    """SHA-256 of the canonical form; equal trees share a fingerprint."""
    return hashlib.sha256(rule_to_json(rule).encode("utf-8")).hexdigest()
