# tests/__init__.py
"""
Test Suite for tracelog.

Organization:
- `core`: Field derivation, SpanLogger and GlobalTelemetry lifecycle.
- `shared`: Settings, the structured logger and its sinks, file rotation.

Backends are real (structlog, OpenTelemetry SDK); spans are exported to an
in-memory exporter and log lines are read back from the JSON log file.
"""
