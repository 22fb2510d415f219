"""
Condition expressions for the query compiler.

Translates field lookups (``age__gte``) and operator mappings
(``{"in": [...]}`` or ``{"$in": [...]}``) into store-native criteria.
"""

import re
from typing import Any

from docmachine.exceptions import ArgumentError


# Supported operators and their meanings
OPERATORS = {
    "eq": "equals",
    "ne": "not equals",
    "gt": "greater than",
    "gte": "greater than or equal",
    "lt": "less than",
    "lte": "less than or equal",
    "in": "in list",
    "nin": "not in list",
    "all": "array contains all",
    "size": "array length",
    "exists": "field present",
    "regex": "matches regular expression",
    "options": "regular expression options",
    "not": "negation",
    "contains": "contains",
    "startswith": "starts with",
    "endswith": "ends with",
    "icontains": "contains (case-insensitive)",
    "istartswith": "starts with (case-insensitive)",
    "iendswith": "ends with (case-insensitive)",
}

LOGICAL_OPERATORS = ("$and", "$or", "$nor")

_TEXT_PATTERNS = {
    "contains": "{}",
    "startswith": "^{}",
    "endswith": "{}$",
}


def parse_field_lookup(field_lookup: str) -> tuple[str, str]:
    """
    Parse a field lookup string into field name and operator.

    Only a known operator suffix is split off, so field names that happen
    to contain a double underscore are left alone.

    Args:
        field_lookup: Field lookup string (e.g., "age__gte")

    Returns:
        Tuple of (field_name, operator)

    Example:
        >>> parse_field_lookup("age__gte")
        ('age', 'gte')
        >>> parse_field_lookup("name")
        ('name', 'eq')
    """
    if "__" in field_lookup:
        field, operator = field_lookup.rsplit("__", 1)
        if field and operator in OPERATORS:
            return field, operator
    return field_lookup, "eq"


def normalize_operator(name: str) -> str:
    """
    Return the bare operator name, validating it.

    Raises:
        ArgumentError: If the operator is not supported
    """
    bare = name[1:] if name.startswith("$") else name
    if bare not in OPERATORS:
        raise ArgumentError(f"Unsupported query operator: {name}")
    return bare


def is_operator_expression(value: Any) -> bool:
    """
    Check if a condition value is an operator expression.

    A mapping is an operator expression when every key is ``$``-prefixed,
    or when every key is a bare operator name. Anything else is compared
    for equality (e.g. an embedded document).
    """
    if not isinstance(value, dict) or not value:
        return False
    keys = list(value)
    if not all(isinstance(key, str) for key in keys):
        return False
    if all(key.startswith("$") for key in keys):
        return True
    return all(key in OPERATORS for key in keys)


def operator_expression(operator: str, value: Any) -> dict[str, Any]:
    """
    Compile one operator and its operand into a criteria fragment.

    Example:
        >>> operator_expression("gte", 18)
        {'$gte': 18}
        >>> operator_expression("istartswith", "al")
        {'$regex': '^al', '$options': 'i'}
    """
    operator = normalize_operator(operator)

    if operator in ("in", "nin", "all"):
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise ArgumentError(f"${operator} requires a list of values, got {value!r}")
        return {f"${operator}": list(value)}

    case_insensitive = operator.startswith("i") and operator[1:] in _TEXT_PATTERNS
    text_operator = operator[1:] if case_insensitive else operator
    if text_operator in _TEXT_PATTERNS:
        fragment: dict[str, Any] = {"$regex": _TEXT_PATTERNS[text_operator].format(re.escape(str(value)))}
        if case_insensitive:
            fragment["$options"] = "i"
        return fragment

    if operator == "not":
        return {"$not": compile_value(value)}

    return {f"${operator}": value}


def compile_value(value: Any) -> Any:
    """
    Compile the value side of a plain ``field: value`` condition.

    Operator mappings are normalized, collections become ``$in``, and
    everything else is kept as an equality value.
    """
    if is_operator_expression(value):
        compiled: dict[str, Any] = {}
        for operator, operand in value.items():
            compiled.update(operator_expression(operator, operand))
        return compiled
    if isinstance(value, (list, tuple, set, frozenset)):
        return {"$in": list(value)}
    return value


def merge_condition(criteria: dict[str, Any], field: str, fragment: Any) -> None:
    """
    Merge a compiled fragment into criteria for a field.

    Several lookups on the same field (``age__gte`` and ``age__lt``) are
    combined into one operator mapping.
    """
    if field not in criteria:
        criteria[field] = fragment
        return

    existing = criteria[field]
    merged = dict(existing) if is_operator_expression(existing) else {"$eq": existing}
    merged.update(fragment if is_operator_expression(fragment) else {"$eq": fragment})
    criteria[field] = merged
