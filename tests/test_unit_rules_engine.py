"""
Unit tests for the RulesEngine facade.

Tests cover:
- Reference scenarios (push notifications, audience targeting, tags)
- Validation before evaluation and the failure discipline
- Rules given by id
- Metrics recording
"""

import pytest

from rules_engine.core.config import Settings
from rules_engine.core.errors import InvalidRuleError, RuleNotFoundError
from rules_engine.core.observability import metrics
from rules_engine.domain.models import ValidationResult
from rules_engine.services.rules_engine import RulesEngine

PUSH_DISABLED = {
    "conditions": {"all": [{"field": "pushEnabled", "operator": "equals", "value": False}]}
}

AUTHENTICATED_GENDER_2 = {
    "conditions": {
        "all": [
            {"field": "authenticated", "operator": "equals", "value": True},
            {"field": "gender", "operator": "equals", "value": 2},
        ]
    }
}

TAGGED = {
    "conditions": {"all": [{"field": "tags", "operator": "contains any", "value": ["a", "b"]}]}
}


class TestScenarios:
    def test_push_disabled_matches(self, engine):
        assert engine.evaluate(PUSH_DISABLED, {"pushEnabled": False}) is True

    def test_push_enabled_does_not_match(self, engine):
        assert engine.evaluate(PUSH_DISABLED, {"pushEnabled": True}) is False

    def test_authenticated_and_gender(self, engine):
        assert engine.evaluate(AUTHENTICATED_GENDER_2, {"authenticated": True, "gender": 2}) is True
        criteria = {"authenticated": True, "gender": 1}
        assert engine.evaluate(AUTHENTICATED_GENDER_2, criteria) is False

    def test_contains_any_tags(self, engine):
        assert engine.evaluate(TAGGED, {"tags": ["x", "b"]}) is True
        assert engine.evaluate(TAGGED, {"tags": ["x", "y"]}) is False

    def test_more_than_one_branch_is_invalid(self, engine):
        result = engine.validate({"conditions": {"any": [], "all": []}})
        assert result.is_valid is False
        assert "more than one" in result.error.message

    def test_unknown_reference_fails_loudly(self, engine):
        rule = {"conditions": {"all": ["does-not-exist"]}}
        with pytest.raises(RuleNotFoundError):
            engine.evaluate(rule, {})

    def test_batch_criteria(self, engine):
        assert engine.evaluate(PUSH_DISABLED, [{"pushEnabled": False}, {"pushEnabled": True}]) == [
            True,
            False,
        ]


class TestValidationGate:
    def test_invalid_rule_raises_and_reports(self, engine, reported_errors):
        rule = {"id": "bad", "conditions": {"all": [{"field": "a", "operator": "eq", "value": 1}]}}
        with pytest.raises(InvalidRuleError) as exc_info:
            engine.evaluate(rule, {"a": 1})

        validation = exc_info.value.details["validation"]
        assert isinstance(validation, ValidationResult)
        assert not validation.is_valid
        assert exc_info.value.details["rule_id"] == "bad"

        message, context = reported_errors[0]
        assert message == "Rule is not valid"
        assert context["validation"]["isValid"] is False

    def test_validate_reports_instead_of_raising(self, engine, reported_errors):
        result = engine.validate(42)
        assert result.to_wire() == {
            "isValid": False,
            "error": {"message": "Rule must be a valid object", "element": 42, "path": "$"},
        }
        assert reported_errors == []

    def test_validate_is_idempotent(self, engine):
        rule = {"conditions": {"all": [{"field": "a", "operator": "in", "value": "x"}]}}
        assert engine.validate(rule) == engine.validate(rule)


class TestRulesById:
    def test_evaluate_by_id(self, engine):
        assert engine.evaluate("adult", {"age": 18}) is True
        assert engine.evaluate("adult", {"age": 17}) is False

    def test_validate_by_id(self, engine):
        assert engine.validate("verified-adult").is_valid

    def test_unknown_id_raises(self, engine):
        with pytest.raises(RuleNotFoundError):
            engine.validate("nope")

    def test_id_without_repository_raises(self, settings):
        with pytest.raises(RuleNotFoundError):
            RulesEngine(settings=settings).evaluate("adult", {})

    def test_get_conditions_by_rule_id(self, engine):
        assert engine.get_conditions_by_rule_id("adult") == {
            "all": [{"field": "age", "operator": "greater than or equal", "value": 18}]
        }
        assert engine.get_conditions_by_rule_id("nope") == {}


class TestMetrics:
    def _sample(self, name: str, labels: dict[str, str]) -> float:
        value = metrics.registry.get_sample_value(name, labels)
        return value or 0.0

    def test_evaluations_are_counted(self, repository):
        engine = RulesEngine(repository, settings=Settings(metrics_enabled=True))
        before = self._sample("rules_engine_evaluations_total", {"outcome": "matched"})
        engine.evaluate(PUSH_DISABLED, {"pushEnabled": False})
        after = self._sample("rules_engine_evaluations_total", {"outcome": "matched"})
        assert after == before + 1

    def test_invalid_rules_are_counted(self, repository, error_sink):
        engine = RulesEngine(
            repository, settings=Settings(metrics_enabled=True), report_error=error_sink
        )
        before = self._sample("rules_engine_evaluations_total", {"outcome": "invalid"})
        with pytest.raises(InvalidRuleError):
            engine.evaluate({"conditions": []}, {})
        after = self._sample("rules_engine_evaluations_total", {"outcome": "invalid"})
        assert after == before + 1

    def test_disabled_metrics_are_not_recorded(self, engine):
        before = self._sample("rules_engine_validations_total", {"status": "valid"})
        engine.validate(PUSH_DISABLED)
        assert self._sample("rules_engine_validations_total", {"status": "valid"}) == before
