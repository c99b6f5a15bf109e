"""
Pytest configuration and shared fixtures for rules engine tests.

Provides:
- A repository seeded with stored rules (conditions as JSON text, as stored)
- Settings with metrics disabled
- An error sink that records reports instead of logging them
- A RulesEngine wired to all of the above
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402 (import after path setup)

from rules_engine.core.config import Settings  # noqa: E402
from rules_engine.repos.rule_repo import InMemoryRuleRepository  # noqa: E402
from rules_engine.services.rules_engine import RulesEngine  # noqa: E402

ADULT_CONDITIONS = {"all": [{"field": "age", "operator": "greater than or equal", "value": 18}]}
VERIFIED_CONDITIONS = {"all": [{"field": "account.verified", "operator": "equals", "value": True}]}


def stored_rule(rule_id: str, conditions: Any, label: str = "") -> dict[str, Any]:
    """Record in storage shape: conditions serialized as JSON text."""
    return {
        "id": rule_id,
        "label": label or rule_id,
        "conditions": json.dumps(conditions),
        "lastModified": "2024-05-01T10:00:00Z",
    }


@pytest.fixture
def repository() -> InMemoryRuleRepository:
    return InMemoryRuleRepository(
        [
            stored_rule("adult", ADULT_CONDITIONS, "Adult customer"),
            stored_rule("verified", VERIFIED_CONDITIONS, "Verified account"),
            stored_rule("verified-adult", {"all": ["adult", "verified"]}),
            stored_rule(
                "multi-root",
                [
                    {"all": [{"field": "tier", "operator": "equals", "value": "gold"}]},
                    {"all": [{"field": "tier", "operator": "equals", "value": "platinum"}]},
                ],
            ),
            stored_rule("loop-a", {"any": ["loop-b"]}),
            stored_rule("loop-b", {"any": ["loop-a"]}),
        ]
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(metrics_enabled=False, max_depth=16)


@pytest.fixture
def reported_errors() -> list[tuple[str, dict[str, Any]]]:
    return []


@pytest.fixture
def error_sink(reported_errors):
    def sink(message: str, context: dict[str, Any]) -> None:
        reported_errors.append((message, context))

    return sink


@pytest.fixture
def engine(repository, settings, error_sink) -> RulesEngine:
    return RulesEngine(repository, settings=settings, report_error=error_sink)
