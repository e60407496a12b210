"""OpenTelemetry counters for the data access layer.

Counters are emitted only when the owning flag (``DAL_METRICS_ENABLED``) is
set, or, when the flag is absent, when an OTLP endpoint is configured. Every
counter the DAL emits is declared in ``DAL_COUNTERS`` so that instrument names
and descriptions live in one place.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping

from opentelemetry import metrics

from common.config.env import get_env_bool, get_env_str

logger = logging.getLogger(__name__)

DAL_COUNTERS: Mapping[str, str] = {
    "dal.routing.fallback": "Statements routed to the default backend",
    "dal.schema.migrations_applied": "Table changes applied by schema migrations",
    "dal.backend.unavailable": "Backends that failed to initialize",
}


def otlp_endpoint_configured() -> bool:
    """Return True when an OTLP metrics exporter has somewhere to send data."""
    if get_env_bool("OTEL_SDK_DISABLED", False):
        return False
    if (os.getenv("OTEL_METRICS_EXPORTER") or "").strip().lower() == "none":
        return False
    return bool(
        get_env_str("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT")
        or get_env_str("OTEL_EXPORTER_OTLP_ENDPOINT")
    )


def is_metrics_enabled(flag: str) -> bool:
    """An explicit flag wins; otherwise follow the exporter configuration."""
    if os.getenv(flag) is None:
        return otlp_endpoint_configured()
    try:
        return bool(get_env_bool(flag, False))
    except ValueError:
        logger.warning("Ignoring unparseable %s=%r; metrics disabled.", flag, os.getenv(flag))
        return False


def _attribute_value(value: Any):
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (str, int, float)):
        return value
    return str(value)


class OptionalMetrics:
    """Declared counters that become no-ops while metrics are disabled."""

    def __init__(self, meter_name: str, flag: str, counters: Mapping[str, str]):
        self.meter_name = meter_name
        self.flag = flag
        self.counters = dict(counters)
        self._meter = None
        self._instruments: Dict[str, Any] = {}

    def _instrument(self, name: str):
        instrument = self._instruments.get(name)
        if instrument is None:
            if self._meter is None:
                self._meter = metrics.get_meter(self.meter_name)
            instrument = self._meter.create_counter(
                name=name, description=self.counters[name], unit="1"
            )
            self._instruments[name] = instrument
        return instrument

    def add_counter(self, name: str, value: int = 1, **attributes: Any) -> None:
        """Increment a declared counter; ``None`` attributes are dropped."""
        if name not in self.counters:
            raise ValueError(f"Undeclared counter {name!r}")
        if not is_metrics_enabled(self.flag):
            return
        labels = {k: _attribute_value(v) for k, v in attributes.items() if v is not None}
        try:
            self._instrument(name).add(int(value), labels)
        except Exception as exc:
            # Telemetry must never fail a statement.
            logger.debug("Could not emit %s: %s", name, exc)


dal_metrics = OptionalMetrics("atr-portal-dal", "DAL_METRICS_ENABLED", DAL_COUNTERS)
