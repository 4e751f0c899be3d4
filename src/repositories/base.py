"""Shared query helpers for the Cellar persistence layer.

Repositories call add()/flush()/execute() only, never commit().
Commit/rollback belongs to the caller (service transaction or the
session dependency's Unit-of-Work).
"""

from typing import Any

from sqlalchemy import Select
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import ColumnElement
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.types import Integer

from src.models.common import SortOrder


class substring_position(FunctionElement):
    """1-based position of ``needle`` in ``haystack``, 0 when absent.

    Case-sensitive on every backend, unlike LIKE which folds ASCII case
    on SQLite.
    """

    type = Integer()
    inherit_cache = True
    name = "substring_position"


@compiles(substring_position)
def _compile_strpos(element: substring_position, compiler: Any, **kw: Any) -> str:
    haystack, needle = list(element.clauses)
    return f"strpos({compiler.process(haystack, **kw)}, {compiler.process(needle, **kw)})"


@compiles(substring_position, "sqlite")
def _compile_instr(element: substring_position, compiler: Any, **kw: Any) -> str:
    haystack, needle = list(element.clauses)
    return f"instr({compiler.process(haystack, **kw)}, {compiler.process(needle, **kw)})"


def contains_substring(column: ColumnElement, search: str) -> ColumnElement[bool]:
    """Case-sensitive substring predicate."""
    return substring_position(column, search) > 0


def apply_page(
    stmt: Select,
    *,
    sort_column: ColumnElement,
    order: SortOrder,
    page: int,
    limit: int,
) -> Select:
    """Order, then window the statement with ``offset = page * limit``.

    ``page`` is zero-origin: page 0 is the first ``limit`` rows.
    """
    ordering = sort_column.asc() if order == SortOrder.ASC else sort_column.desc()
    return stmt.order_by(ordering).offset(page * limit).limit(limit)
