"""Placeholder dialect translation between SQLite-style and Postgres statements.

Callers author every statement with positional ``?`` placeholders. SQLite
executes them unchanged; Postgres needs numbered placeholders, has no
``INSERT OR IGNORE`` and only reports generated keys through ``RETURNING``.

Known limitation: ``INSERT OR IGNORE`` becomes a plain ``INSERT`` on Postgres,
so a conflicting row raises instead of being skipped. Conflict targets differ
per table and are not guessed here.
"""

import re

from dal.backends import Backend, coerce_backend
from dal.postgres.param_translation import mask_quoted_sql, translate_qmark_params_to_postgres

_INSERT_OR_IGNORE = re.compile(r"\bINSERT\s+OR\s+IGNORE\s+INTO\b", re.IGNORECASE)
_RETURNING = re.compile(r"\bRETURNING\b", re.IGNORECASE)
_TRAILING_TERMINATOR = re.compile(r"[\s;]*$")

RETURNING_ID_CLAUSE = " RETURNING id"


def leading_keyword(sql: str) -> str:
    """Return the first keyword of a statement, upper-cased ('' if none)."""
    match = re.match(r"\s*([A-Za-z]+)", mask_quoted_sql(sql))
    return match.group(1).upper() if match else ""


def has_returning(sql: str) -> bool:
    """Return True when the statement already carries a RETURNING clause."""
    return bool(_RETURNING.search(mask_quoted_sql(sql)))


def is_insert(sql: str) -> bool:
    """Return True when the statement is an INSERT (including INSERT OR ...)."""
    return leading_keyword(sql) == "INSERT"


def _statement_end(sql: str) -> int:
    """Offset just past the last token, ignoring trailing comments, whitespace and ``;``."""
    return _TRAILING_TERMINATOR.search(mask_quoted_sql(sql)).start()


def _strip_insert_or_ignore(sql: str) -> str:
    masked = mask_quoted_sql(sql)
    matches = list(_INSERT_OR_IGNORE.finditer(masked))
    for match in reversed(matches):
        sql = sql[: match.start()] + "INSERT INTO" + sql[match.end() :]
    return sql


def translate(sql: str, backend) -> str:
    """Rewrite ``sql`` into the dialect expected by ``backend``.

    The result depends only on the statement text and the backend, never on
    parameter values.
    """
    backend = coerce_backend(backend)
    if backend is Backend.SQLITE:
        return sql

    converted = _strip_insert_or_ignore(translate_qmark_params_to_postgres(sql))

    if is_insert(converted) and not has_returning(converted):
        converted = converted[: _statement_end(converted)] + RETURNING_ID_CLAUSE
    return converted
