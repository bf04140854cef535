"""Sandboxed evaluation of condition expressions.

Conditions are data, not code: they are evaluated with ``simpleeval`` over a
restricted grammar (literals, comparisons, boolean operators, dotted lookup
and a handful of pure functions). Python's ``eval`` is never used.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Mapping, Optional

from simpleeval import EvalWithCompoundTypes

from .errors import ConditionEvaluationError

logger = logging.getLogger(__name__)

# JavaScript-style operators accepted in stored conditions.
_OPERATOR_REWRITES = (
    (re.compile(r"!=="), "!="),
    (re.compile(r"==="), "=="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
)

_CONSTANTS: Dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "True": True,
    "False": False,
    "None": None,
}

SAFE_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "abs": abs,
    "min": min,
    "max": max,
    "any": any,
    "all": all,
}


def normalize_expression(expression: str) -> str:
    for pattern, replacement in _OPERATOR_REWRITES:
        expression = pattern.sub(replacement, expression)
    return expression.strip()


class ConditionEvaluator:
    """Evaluate boolean expressions against a run's variables."""

    def __init__(self, functions: Optional[Mapping[str, Callable[..., Any]]] = None):
        self._functions = dict(SAFE_FUNCTIONS)
        if functions:
            self._functions.update(functions)

    def _names(self, variables: Mapping[str, Any]) -> Dict[str, Any]:
        names = dict(_CONSTANTS)
        names.update(variables)
        scope = dict(variables)
        names["arguments"] = scope
        names["variables"] = scope
        return names

    def evaluate(self, expression: str, variables: Mapping[str, Any]) -> bool:
        """Return the truth value of ``expression``.

        Raises:
            ConditionEvaluationError: If the expression is empty, malformed,
                references an unknown name or fails while evaluating.
        """
        source = normalize_expression(expression)
        if not source:
            raise ConditionEvaluationError(expression, "empty expression")

        evaluator = EvalWithCompoundTypes(
            names=self._names(variables), functions=self._functions
        )
        try:
            value = evaluator.eval(source)
        except Exception as exc:
            logger.debug(f"Condition {expression!r} failed: {exc}")
            raise ConditionEvaluationError(expression, str(exc)) from exc
        return bool(value)
