# tracelog/__init__.py
"""
tracelog - structured logging with distributed-tracing correlation.

Builds a leveled, multi-sink structlog logger (console and rotating file) and,
optionally, an OpenTelemetry tracer provider. Log lines written through a
SpanLogger carry the trace id, span id and operation name of the span they
belong to, so they can be lined up with the trace timeline.
"""

__version__ = "1.0.0"

from tracelog.core.domain.exceptions import (
    DirectoryCreateFailedError,
    LoggedPanicError,
    SpanAlreadyEndedError,
    TelemetryClosedError,
    TelemetryError,
    TelemetryNotInitializedError,
    TelemetryShutdownError,
    TracingInitFailedError,
    TracingNotConfiguredError,
)
from tracelog.core.domain.models import Field, Level, field, field_error, field_format
from tracelog.core.global_telemetry import (
    GlobalTelemetry,
    get_telemetry,
    initialize,
    shutdown,
    start_span,
)
from tracelog.core.span_logger import SpanLogger
from tracelog.shared.config import SpanExporterKind, TelemetrySettings

__all__ = [
    "__version__",
    "TelemetrySettings",
    "SpanExporterKind",
    "GlobalTelemetry",
    "SpanLogger",
    "Level",
    "Field",
    "field",
    "field_format",
    "field_error",
    "initialize",
    "shutdown",
    "start_span",
    "get_telemetry",
    "TelemetryError",
    "DirectoryCreateFailedError",
    "TracingInitFailedError",
    "TracingNotConfiguredError",
    "SpanAlreadyEndedError",
    "TelemetryClosedError",
    "TelemetryNotInitializedError",
    "TelemetryShutdownError",
    "LoggedPanicError",
]
