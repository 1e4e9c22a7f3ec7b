# tests/conftest.py
import json
import os

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from tracelog.core.global_telemetry import GlobalTelemetry
from tracelog.shared.config import TelemetrySettings


def read_log_entries(path):
    """Parses a JSON-lines log file into a list of dicts (in file order)."""
    if not os.path.exists(path):
        return []
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture
def make_settings(log_dir):
    """
    Factory for test settings: JSON file sink under tmp_path, no console
    output, no global tracer provider registration.
    """
    def _make(**overrides):
        values = {
            "SERVICE_NAME": "svc",
            "STRUCTURED": True,
            "LOG_DIR": str(log_dir),
            "ENABLE_CONSOLE_SINK": False,
            "SET_GLOBAL_TRACER_PROVIDER": False,
            "SPAN_EXPORTER": "none",
        }
        values.update(overrides)
        return TelemetrySettings(**values)
    return _make


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def telemetry(make_settings, span_exporter):
    """Tracing-enabled telemetry exporting to memory; always shut down."""
    instance = GlobalTelemetry.initialize(make_settings(TRACING_ENABLED=True), span_exporter)
    yield instance
    instance.shutdown()


@pytest.fixture
def log_entries(telemetry):
    """Callable returning the entries written so far to the telemetry's log file."""
    return lambda: read_log_entries(telemetry.settings.LOG_FILE_PATH)


@pytest.fixture
def read_entries():
    return read_log_entries
