"""Optional OpenTelemetry spans around hybrid DAL statements."""

import hashlib
from typing import Awaitable, Optional

from opentelemetry import trace

from common.observability.metrics import is_metrics_enabled

TRACE_FLAG = "DAL_TRACE_QUERIES"


def trace_enabled() -> bool:
    """Tracing follows ``DAL_TRACE_QUERIES``, else the OTLP exporter configuration."""
    return is_metrics_enabled(TRACE_FLAG)


def hash_sql(sql: str) -> str:
    """Fingerprint a statement so spans and logs never carry its text or parameters."""
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    backend: str,
    verb: str,
    sql: Optional[str],
    operation: Awaitable,
):
    """Await ``operation`` inside a ``dal.query.<verb>`` span when tracing is on."""
    if not trace_enabled():
        return await operation

    attributes = {"db.backend": backend, "db.verb": verb}
    if sql:
        attributes["db.statement_hash"] = hash_sql(sql)

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(f"dal.query.{verb}", attributes=attributes) as span:
        try:
            result = await operation
        except Exception:
            span.set_attribute("db.status", "error")
            raise
        span.set_attribute("db.status", "ok")
        return result
