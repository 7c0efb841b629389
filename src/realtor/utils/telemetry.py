"""Tracing for Realtor's three hops: client request, server dispatch, model turn.

Modules take a tracer from :func:`get_tracer` at import time and tag spans
with the ``realtor.*`` keys below.  Until :func:`configure_telemetry` installs
an SDK provider, the OpenTelemetry API hands out no-op tracers, so spans cost
nothing in a default install.

Export is driven by the ``telemetry:`` block of the client config::

    telemetry:
      enabled: true
      console: true                          # span JSON on stderr
      otlp_endpoint: http://localhost:4317   # OTLP/gRPC collector

Console spans go to stderr because stdout is the wire in ``realtor serve``.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from realtor.config import TelemetrySettings

logger = logging.getLogger(__name__)

ATTR_METHOD = "realtor.rpc.method"
ATTR_REQUEST_ID = "realtor.rpc.id"
ATTR_ERROR_CODE = "realtor.rpc.error_code"
ATTR_TOOL_NAME = "realtor.tool.name"
ATTR_MODEL = "realtor.model"
ATTR_BACKEND = "realtor.backend"
ATTR_TOKENS_TOTAL = "realtor.tokens.total"
ATTR_TURN_STATE = "realtor.turn.state"

_INSTALL_HINT = "Install it with: pip install realtor-mcp[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or "realtor")


def configure_telemetry(settings: TelemetrySettings, *, service_name: str = "realtor") -> Any:
    """Install a tracer provider exporting spans as *settings* asks.

    Returns the installed provider, or ``None`` when telemetry is disabled.
    Disabled settings never touch the SDK, so the ``otel`` extra is only
    needed once ``enabled`` is set.

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, for an OTLP endpoint,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    if not settings.enabled:
        return None

    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = f"opentelemetry-sdk is required for telemetry export. {_INSTALL_HINT}"
        raise ImportError(msg) from exc

    processors = []
    if settings.console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    if settings.otlp_endpoint:
        processors.append(BatchSpanProcessor(_otlp_exporter(settings.otlp_endpoint)))
    if not processors:
        logger.warning("Telemetry enabled without an exporter; spans are recorded and dropped")

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    logger.debug(
        "Telemetry on for %s (console=%s, otlp=%s)",
        service_name,
        settings.console,
        settings.otlp_endpoint,
    )
    return provider


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_INSTALL_HINT}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
