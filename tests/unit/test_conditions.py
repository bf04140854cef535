"""Condition evaluator tests."""

import pytest

from stepwise.conditions import ConditionEvaluator, normalize_expression
from stepwise.errors import ConditionEvaluationError


@pytest.fixture
def evaluator():
    return ConditionEvaluator()


def test_dotted_lookup_through_both_prefixes(evaluator):
    variables = {"runTests": True}
    assert evaluator.evaluate("arguments.runTests", variables) is True
    assert evaluator.evaluate("variables.runTests", variables) is True
    assert evaluator.evaluate("runTests", variables) is True


def test_comparisons_and_boolean_operators(evaluator):
    variables = {"environment": "production", "count": 3}
    assert evaluator.evaluate("environment == 'production' and count > 2", variables)
    assert not evaluator.evaluate("count >= 5 or environment != 'production'", variables)
    assert evaluator.evaluate("not (count < 1)", variables)


def test_javascript_operators_are_accepted(evaluator):
    variables = {"environment": "staging", "ok": True}
    assert evaluator.evaluate("environment === 'staging' && ok", variables)
    assert evaluator.evaluate("environment !== 'production' || false", variables)


def test_json_literals(evaluator):
    assert evaluator.evaluate("true", {}) is True
    assert evaluator.evaluate("false", {}) is False
    assert evaluator.evaluate("null == None", {}) is True


def test_safe_functions(evaluator):
    assert evaluator.evaluate("len(items) == 2", {"items": ["a", "b"]})
    assert evaluator.evaluate("len(variables.path) > 0", {"path": "/srv"})


def test_result_is_coerced_to_bool(evaluator):
    assert evaluator.evaluate("name", {"name": "x"}) is True
    assert evaluator.evaluate("name", {"name": ""}) is False


def test_malformed_expression_raises(evaluator):
    with pytest.raises(ConditionEvaluationError):
        evaluator.evaluate("count >", {"count": 1})


def test_unknown_name_raises(evaluator):
    with pytest.raises(ConditionEvaluationError) as exc_info:
        evaluator.evaluate("missing == 1", {})
    assert exc_info.value.expression == "missing == 1"


def test_empty_expression_raises(evaluator):
    with pytest.raises(ConditionEvaluationError):
        evaluator.evaluate("   ", {})


def test_general_code_is_rejected(evaluator):
    with pytest.raises(ConditionEvaluationError):
        evaluator.evaluate("__import__('os').getcwd()", {})
    with pytest.raises(ConditionEvaluationError):
        evaluator.evaluate("open('/etc/passwd')", {})


def test_normalize_expression():
    assert normalize_expression("a === b && c !== d || e") == "a == b  and  c != d  or  e"
