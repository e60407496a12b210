"""SQL AST helpers using sqlglot."""

from functools import lru_cache
from typing import Optional, Tuple

import sqlglot
from sqlglot import exp


def parse_sql(sql: str, dialect: str = "sqlite") -> Optional[exp.Expression]:
    """Parse SQL string into AST expression.

    Returns None if parsing fails.
    """
    try:
        expressions = sqlglot.parse(sql, dialect=dialect)
        if not expressions or expressions[0] is None:
            return None
        return expressions[0]
    except Exception:
        return None


@lru_cache(maxsize=512)
def referenced_tables(sql: str) -> Optional[Tuple[str, ...]]:
    """Return lower-cased base table names referenced by ``sql``, in AST order.

    CTE names are excluded. Returns None when the statement cannot be parsed,
    including statements sqlglot only keeps as an opaque command.
    """
    ast = parse_sql(sql)
    if ast is None or isinstance(ast, exp.Command):
        return None

    cte_names = {cte.alias_or_name.lower() for cte in ast.find_all(exp.CTE)}
    seen = []
    for table in ast.find_all(exp.Table):
        name = table.name.lower()
        if name and name not in cte_names and name not in seen:
            seen.append(name)
    return tuple(seen)
