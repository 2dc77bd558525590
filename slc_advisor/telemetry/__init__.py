"""Telemetry and observability for the SLC advisor.

Usage:
    from slc_advisor.telemetry import init_telemetry, turn_span

    init_telemetry()

    with turn_span(canvas_id, message) as span:
        ...

Environment Variables:
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint - default: http://localhost:4317
    OTEL_SERVICE_NAME: Service name for traces - default: slc-advisor
    OTEL_TRACES_EXPORTER: Exporter type (otlp, console, none) - default: none
    OTEL_SDK_DISABLED: Disable all telemetry - default: false
"""

from .config import (
    TelemetryConfig,
    init_telemetry,
    is_telemetry_enabled,
    shutdown_telemetry,
)
from .spans import (
    get_tracer,
    record_error,
    tool_span,
    turn_span,
)

__all__ = [
    # Configuration
    "TelemetryConfig",
    "init_telemetry",
    "shutdown_telemetry",
    "is_telemetry_enabled",
    # Spans
    "get_tracer",
    "turn_span",
    "tool_span",
    "record_error",
]
