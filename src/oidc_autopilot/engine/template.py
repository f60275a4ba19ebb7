"""
Template Engine - ``{{name}}`` substitution over JSON-like values.
"""

import re
from typing import Any, Mapping

_PLACEHOLDER = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")


def apply_template(value: Any, variables: Mapping[str, str]) -> Any:
    """
    Substitute ``{{name}}`` placeholders in strings, lists and dicts.
    
    Placeholders whose name is missing from ``variables`` are left verbatim.
    Containers are rebuilt with the same shape and key order; dict keys are
    never substituted. Any other value is returned as-is.
    
    Args:
        value: String, list, tuple, dict or any other value
        variables: Lookup of placeholder name to replacement
        
    Returns:
        The templated value
        
    Example:
        >>> apply_template({"url": "https://rp/cb?state={{state}}"}, {"state": "xyz"})
        {'url': 'https://rp/cb?state=xyz'}
    """
    if isinstance(value, str):
        return _render_string(value, variables)
    if isinstance(value, list):
        return [apply_template(item, variables) for item in value]
    if isinstance(value, tuple):
        return tuple(apply_template(item, variables) for item in value)
    if isinstance(value, dict):
        return {key: apply_template(item, variables) for key, item in value.items()}
    return value


def _render_string(text: str, variables: Mapping[str, str]) -> str:
    def replacer(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)
    
    return _PLACEHOLDER.sub(replacer, text)
