"""Statement routing between the Postgres and SQLite backends.

Routing prefers an explicit ``target`` (a backend or a table name) supplied
by the caller. Without one, the first table in the parsed statement decides;
a scan for the first ``FROM``/``INTO``/``UPDATE``/``TABLE`` reference covers
statements sqlglot cannot parse. Statements whose tables live in different
backends are rejected; joins across engines cannot be answered by either one.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Union

from common.observability.metrics import dal_metrics
from dal.backends import Backend, Verb, coerce_backend, coerce_verb
from dal.errors import BackendUnavailableError, CrossBackendQueryError, UnroutableStatementError
from dal.ownership import TableOwnershipMap, normalize_table_name
from dal.postgres.param_translation import mask_quoted_sql
from dal.util.sql_ast import referenced_tables

logger = logging.getLogger(__name__)

REASON_EXPLICIT_BACKEND = "explicit_backend"
REASON_OWNERSHIP = "ownership"
REASON_UNKNOWN_TABLE = "unknown_table"
REASON_NO_TABLE = "no_table"
REASON_BACKEND_UNAVAILABLE = "backend_unavailable"

_TABLE_KEYWORD = re.compile(r"\b(?:FROM|INTO|UPDATE|TABLE)\s+", re.IGNORECASE)
_EXISTENCE_GUARD = re.compile(r"IF\s+(?:NOT\s+)?EXISTS\s+", re.IGNORECASE)
_CLOSING_QUOTE = {'"': '"', "`": "`", "[": "]"}

Target = Union[Backend, str, None]


@dataclass(frozen=True)
class RoutingDecision:
    """Outcome of routing one statement."""

    backend: Backend
    verb: Verb
    table: Optional[str]
    owner: Optional[Backend]
    reason: str

    @property
    def is_fallback(self) -> bool:
        """True when the statement did not land on its mapped backend."""
        return self.reason in (REASON_UNKNOWN_TABLE, REASON_NO_TABLE, REASON_BACKEND_UNAVAILABLE)


def _read_identifier(sql: str, start: int) -> str:
    """Read a possibly quoted, possibly schema-qualified identifier at ``start``."""
    parts = []
    i = start
    length = len(sql)
    while i < length:
        ch = sql[i]
        if ch in _CLOSING_QUOTE:
            end = sql.find(_CLOSING_QUOTE[ch], i + 1)
            if end == -1:
                break
            parts.append(sql[i : end + 1])
            i = end + 1
        else:
            match = re.match(r"[A-Za-z0-9_$]+", sql[i:])
            if not match:
                break
            parts.append(match.group(0))
            i += match.end()
        if i < length and sql[i] == ".":
            parts.append(".")
            i += 1
            continue
        break
    return "".join(parts)


def extract_table_name(sql: str) -> Optional[str]:
    """Return the first table named after FROM/INTO/UPDATE/TABLE, unquoted.

    Keywords inside string literals and comments are ignored. ``IF [NOT]
    EXISTS`` guards after ``TABLE`` are skipped. Returns None when no table
    reference is found (subquery-only FROM clauses, unusual statements).
    """
    masked = mask_quoted_sql(sql)
    for match in _TABLE_KEYWORD.finditer(masked):
        position = match.end()
        guard = _EXISTENCE_GUARD.match(masked, position)
        if guard:
            position = guard.end()
        identifier = _read_identifier(sql, position)
        if identifier:
            return normalize_table_name(identifier)
    return None


def statement_table(sql: str) -> Optional[str]:
    """Return the table a statement is routed by.

    The first table in the parsed statement wins, so keywords inside
    expressions such as ``EXTRACT(YEAR FROM col)`` are not mistaken for table
    references. The keyword scan only covers statements sqlglot cannot parse.
    """
    tables = referenced_tables(sql)
    if tables is None:
        return extract_table_name(sql)
    return normalize_table_name(tables[0]) if tables else None


def _preview(sql: str) -> str:
    return " ".join(sql.split())[:120]


class QueryRouter:
    """Decide which backend executes a statement."""

    def __init__(
        self,
        ownership: TableOwnershipMap,
        is_available: Callable[[Backend], bool],
        strict: bool = False,
    ) -> None:
        self.ownership = ownership
        self._is_available = is_available
        self._strict = strict
        self._unavailable_notices: set[str] = set()

    def effective_backend(self, table: Optional[str]) -> Backend:
        """Backend that currently serves ``table``, accounting for availability."""
        owner = self.ownership.owner(table)
        if owner is None or not self._is_available(owner):
            return self.ownership.default_backend
        return owner

    def route(self, sql: str, verb, target: Target = None) -> RoutingDecision:
        """Route ``sql`` for ``verb``.

        Raises:
            CrossBackendQueryError: tables in the statement resolve to
                different backends.
            BackendUnavailableError: an explicitly requested backend has no
                usable handle.
            UnroutableStatementError: strict routing is on and the statement
                names no known table.
        """
        verb = coerce_verb(verb)

        if target is not None:
            explicit = self._explicit_backend(target)
            if explicit is not None:
                if not self._is_available(explicit):
                    raise BackendUnavailableError(explicit.value, "explicitly targeted")
                return RoutingDecision(explicit, verb, None, explicit, REASON_EXPLICIT_BACKEND)
            table = normalize_table_name(str(target))
        else:
            table = statement_table(sql)

        decision = self._decide(sql, verb, table)
        self._check_single_backend(sql)
        if decision.is_fallback:
            self._report_fallback(sql, decision)
        return decision

    def _explicit_backend(self, target) -> Optional[Backend]:
        if isinstance(target, Backend):
            return target
        if target in self.ownership:
            return None
        try:
            return coerce_backend(target)
        except ValueError:
            return None

    def _decide(self, sql: str, verb: Verb, table: Optional[str]) -> RoutingDecision:
        default = self.ownership.default_backend
        if table is None:
            if self._strict:
                raise UnroutableStatementError(_preview(sql), None)
            return RoutingDecision(default, verb, None, None, REASON_NO_TABLE)

        owner = self.ownership.owner(table)
        if owner is None:
            if self._strict:
                raise UnroutableStatementError(_preview(sql), table)
            return RoutingDecision(default, verb, table, None, REASON_UNKNOWN_TABLE)
        if owner is not default and not self._is_available(owner):
            return RoutingDecision(default, verb, table, owner, REASON_BACKEND_UNAVAILABLE)
        return RoutingDecision(owner, verb, table, owner, REASON_OWNERSHIP)

    def _check_single_backend(self, sql: str) -> None:
        tables = referenced_tables(sql)
        if not tables or len(tables) < 2:
            return

        by_backend: dict[str, list[str]] = {}
        for table in tables:
            backend = self.effective_backend(table)
            by_backend.setdefault(backend.value, []).append(table)
        if len(by_backend) > 1:
            raise CrossBackendQueryError(by_backend)

    def _report_fallback(self, sql: str, decision: RoutingDecision) -> None:
        dal_metrics.add_counter(
            "dal.routing.fallback", reason=decision.reason, verb=decision.verb.value
        )

        if decision.reason == REASON_BACKEND_UNAVAILABLE:
            # Expected whenever Postgres is not configured; say it once per table.
            if decision.table in self._unavailable_notices:
                return
            self._unavailable_notices.add(decision.table)
            logger.info(
                "Routing %s to %s: owning backend %s is unavailable",
                decision.table,
                decision.backend.value,
                decision.owner.value,
            )
            return

        logger.warning(
            "Routing fallback (%s) to %s for table=%s: %s",
            decision.reason,
            decision.backend.value,
            decision.table,
            _preview(sql),
        )
