"""``${name}`` placeholder substitution against run variables."""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")

# Both prefixes resolve against the same run-scoped variable map.
_PREFIXES = ("arguments.", "variables.")


def _strip_prefix(name: str) -> str:
    for prefix in _PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix) :]
    return name


def render_value(value: Any) -> str:
    """Render a variable value for substitution into text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def interpolate_string(text: str, variables: Mapping[str, Any]) -> str:
    """Replace every known ``${name}`` token in ``text``.

    Unknown names leave the token untouched. There is no escaping and no
    expression support inside the braces.
    """

    def _replace(match: re.Match[str]) -> str:
        name = _strip_prefix(match.group(1))
        if name in variables:
            return render_value(variables[name])
        return match.group(0)

    return PLACEHOLDER.sub(_replace, text)


def interpolate(value: Any, variables: Mapping[str, Any]) -> Any:
    """Interpolate strings found anywhere inside ``value``.

    Dicts and lists are walked recursively; other values pass through.
    """
    if isinstance(value, str):
        return interpolate_string(value, variables)
    if isinstance(value, dict):
        return {key: interpolate(item, variables) for key, item in value.items()}
    if isinstance(value, list):
        return [interpolate(item, variables) for item in value]
    return value


def interpolate_parameters(
    parameters: Mapping[str, Any], variables: Mapping[str, Any]
) -> dict[str, Any]:
    return {key: interpolate(value, variables) for key, value in parameters.items()}
