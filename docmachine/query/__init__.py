"""Query compilation for docmachine."""

from docmachine.query.options import QueryOptions
from docmachine.query.compiler import (
    CompiledQuery,
    compile_query,
    to_criteria,
    parse_order,
    invert_order,
)

__all__ = [
    "QueryOptions",
    "CompiledQuery",
    "compile_query",
    "to_criteria",
    "parse_order",
    "invert_order",
]
