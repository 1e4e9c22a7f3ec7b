# tests/shared/test_config.py
import os

import pytest
from pydantic import ValidationError

from tracelog.core.domain.models import Level
from tracelog.shared.config import (
    DEFAULT_MAX_AGE_DAYS,
    DEFAULT_MAX_BACKUPS,
    DEFAULT_MAX_FILE_SIZE_MB,
    SpanExporterKind,
    TelemetrySettings,
)


class TestTelemetrySettings:

    def test_zero_rotation_values_get_defaults(self):
        settings = TelemetrySettings(
            SERVICE_NAME="svc", STRUCTURED=True,
            MAX_FILE_SIZE_MB=0, MAX_AGE_DAYS=0, MAX_BACKUPS=0,
        )
        assert settings.MAX_FILE_SIZE_MB == DEFAULT_MAX_FILE_SIZE_MB == 100
        assert settings.MAX_AGE_DAYS == DEFAULT_MAX_AGE_DAYS == 28
        assert settings.MAX_BACKUPS == DEFAULT_MAX_BACKUPS == 7
        assert settings.MAX_FILE_SIZE_BYTES == 100 * 1024 * 1024

    def test_omitted_rotation_values_get_defaults(self):
        settings = TelemetrySettings(SERVICE_NAME="svc", STRUCTURED=False)
        assert (settings.MAX_FILE_SIZE_MB, settings.MAX_AGE_DAYS, settings.MAX_BACKUPS) == (100, 28, 7)

    def test_explicit_rotation_values_are_kept(self):
        settings = TelemetrySettings(
            SERVICE_NAME="svc", STRUCTURED=True,
            MAX_FILE_SIZE_MB=5, MAX_AGE_DAYS=1, MAX_BACKUPS=2,
        )
        assert (settings.MAX_FILE_SIZE_MB, settings.MAX_AGE_DAYS, settings.MAX_BACKUPS) == (5, 1, 2)

    def test_negative_rotation_values_rejected(self):
        with pytest.raises(ValidationError):
            TelemetrySettings(SERVICE_NAME="svc", STRUCTURED=True, MAX_BACKUPS=-1)

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            TelemetrySettings(STRUCTURED=True)
        with pytest.raises(ValidationError):
            TelemetrySettings(SERVICE_NAME="svc")
        with pytest.raises(ValidationError):
            TelemetrySettings(SERVICE_NAME="", STRUCTURED=True)

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = TelemetrySettings(SERVICE_NAME="svc", STRUCTURED=True)

        assert settings.LOG_DIR == os.path.join(str(tmp_path), "logs")
        assert settings.LOG_FILE_PATH == os.path.join(str(tmp_path), "logs", "svc.log")
        assert settings.LOG_LEVEL is Level.INFO
        assert settings.ENABLE_FILE_SINK
        assert settings.ENABLE_CONSOLE_SINK
        assert not settings.TRACING_ENABLED
        assert settings.SPAN_EXPORTER == SpanExporterKind.CONSOLE

    def test_log_dir_resolved_once(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = TelemetrySettings(SERVICE_NAME="svc", STRUCTURED=True)
        monkeypatch.chdir(tmp_path.parent)
        assert settings.LOG_DIR == os.path.join(str(tmp_path), "logs")

    def test_frozen(self):
        settings = TelemetrySettings(SERVICE_NAME="svc", STRUCTURED=True)
        with pytest.raises(ValidationError):
            settings.MAX_BACKUPS = 3

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TRACELOG_SERVICE_NAME", "from-env")
        monkeypatch.setenv("TRACELOG_STRUCTURED", "false")
        monkeypatch.setenv("TRACELOG_LOG_LEVEL", "debug")
        monkeypatch.setenv("TRACELOG_TRACING_ENABLED", "true")

        settings = TelemetrySettings()

        assert settings.SERVICE_NAME == "from-env"
        assert settings.STRUCTURED is False
        assert settings.LOG_LEVEL is Level.DEBUG
        assert settings.TRACING_ENABLED is True

    def test_invalid_level_rejected(self):
        with pytest.raises(ValidationError):
            TelemetrySettings(SERVICE_NAME="svc", STRUCTURED=True, LOG_LEVEL="loud")

    def test_otlp_requires_endpoint(self):
        with pytest.raises(ValidationError):
            TelemetrySettings(
                SERVICE_NAME="svc", STRUCTURED=True,
                TRACING_ENABLED=True, SPAN_EXPORTER="otlp",
            )
        settings = TelemetrySettings(
            SERVICE_NAME="svc", STRUCTURED=True, TRACING_ENABLED=True,
            SPAN_EXPORTER="otlp", OTEL_EXPORTER_OTLP_ENDPOINT="http://collector:4318",
        )
        assert settings.SPAN_EXPORTER == SpanExporterKind.OTLP
