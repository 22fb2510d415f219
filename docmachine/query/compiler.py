"""
Query compiler for docmachine.

Every finder, counter, deleter and updater turns its options into store
criteria through compile_query(), so there is exactly one translation of
options into criteria in the system. Compilation is pure: it never touches
the store and always returns the same result for the same options.
"""

import re
from typing import Any, Mapping, NamedTuple, Optional, Union

from docmachine.exceptions import ArgumentError
from docmachine.query.expressions import (
    LOGICAL_OPERATORS,
    compile_value,
    merge_condition,
    operator_expression,
    parse_field_lookup,
)
from docmachine.query.options import QueryOptions

IDENTITY_FIELD = "_id"

_ASC = re.compile(r"\sasc\b", re.IGNORECASE)
_DESC = re.compile(r"\sdesc\b", re.IGNORECASE)


class CompiledQuery(NamedTuple):
    """Store criteria and query modifiers produced by compile_query()."""

    criteria: dict[str, Any]
    modifiers: dict[str, Any]


def compile_conditions(conditions: Mapping[str, Any]) -> dict[str, Any]:
    """
    Compile a conditions mapping into store criteria.

    Args:
        conditions: Mapping of field (or field lookup) to value

    Returns:
        Store criteria

    Example:
        >>> compile_conditions({"age__gte": 18, "role": ["admin", "staff"]})
        {'age': {'$gte': 18}, 'role': {'$in': ['admin', 'staff']}}
    """
    criteria: dict[str, Any] = {}
    for key, value in conditions.items():
        if key in LOGICAL_OPERATORS:
            if not isinstance(value, (list, tuple)):
                raise ArgumentError(f"{key} requires a list of conditions")
            criteria[key] = [compile_conditions(sub) for sub in value]
            continue

        field, operator = parse_field_lookup(key)
        if field == "id":
            field = IDENTITY_FIELD

        if operator == "eq":
            fragment = compile_value(value)
        else:
            fragment = operator_expression(operator, value)
        merge_condition(criteria, field, fragment)
    return criteria


def parse_order(order: Optional[str]) -> list[tuple[str, int]]:
    """
    Parse order text into (field, direction) pairs.

    Directions are matched case-insensitively; fields without a direction
    sort ascending.

    Example:
        >>> parse_order("last_name asc, age DESC, first_name")
        [('last_name', 1), ('age', -1), ('first_name', 1)]
    """
    if not order:
        return []

    sort = []
    for segment in order.split(","):
        parts = segment.split()
        if not parts:
            continue
        if len(parts) > 2:
            raise ArgumentError(f"Invalid order segment: {segment.strip()!r}")
        direction = parts[1].lower() if len(parts) == 2 else "asc"
        if direction not in ("asc", "desc"):
            raise ArgumentError(f"Invalid order direction {parts[1]!r} in {order!r}")
        sort.append((parts[0], 1 if direction == "asc" else -1))
    return sort


def invert_order(order: str) -> str:
    """
    Invert order text, swapping asc and desc.

    A field without a direction becomes descending.

    Example:
        >>> invert_order("name asc, age desc, email")
        'name desc, age asc, email desc'
    """
    inverted = []
    for segment in order.split(","):
        if not segment.strip():
            continue
        if _ASC.search(segment):
            segment = _ASC.sub(" desc", segment)
        elif _DESC.search(segment):
            segment = _DESC.sub(" asc", segment)
        else:
            segment = f"{segment.strip()} desc"
        inverted.append(segment.strip())
    return ", ".join(inverted)


def compile_query(options: Union[QueryOptions, Mapping[str, Any], None] = None, **kwargs: Any) -> CompiledQuery:
    """
    Compile query options into store criteria and modifiers.

    Args:
        options: QueryOptions or a mapping of options
        **kwargs: Additional options

    Returns:
        CompiledQuery(criteria, modifiers)

    Raises:
        ArgumentError: If the options are malformed

    Example:
        >>> compile_query({"ids": [1, 2], "order": "name desc", "limit": 5})
        CompiledQuery(criteria={'_id': {'$in': [1, 2]}}, modifiers={'sort': [('name', -1)], 'limit': 5})
    """
    query_options = QueryOptions.parse(options, **kwargs)

    criteria = compile_conditions(query_options.conditions)
    if query_options.has_ids:
        criteria[IDENTITY_FIELD] = compile_value(query_options.ids)

    modifiers: dict[str, Any] = {}
    sort = parse_order(query_options.order)
    if sort:
        modifiers["sort"] = sort
    if query_options.offset is not None:
        modifiers["skip"] = query_options.offset
    if query_options.limit is not None:
        modifiers["limit"] = query_options.limit
    if query_options.fields is not None:
        modifiers["fields"] = list(query_options.fields)
    modifiers.update(query_options.passthrough)

    return CompiledQuery(criteria, modifiers)


def to_criteria(options: Union[QueryOptions, Mapping[str, Any], None] = None, **kwargs: Any) -> dict[str, Any]:
    """Compile options and return only the criteria."""
    return compile_query(options, **kwargs).criteria
