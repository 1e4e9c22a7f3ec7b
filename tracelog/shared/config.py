# tracelog/shared/config.py
import os
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tracelog.core.domain.models import Level

DEFAULT_MAX_FILE_SIZE_MB = 100
DEFAULT_MAX_AGE_DAYS = 28
DEFAULT_MAX_BACKUPS = 7


class SpanExporterKind(str, Enum):
    CONSOLE = "console"  # Pretty-printed spans on stdout
    OTLP = "otlp"        # OTLP/HTTP collector (Jaeger, Tempo, ...)
    NONE = "none"        # Spans are created for correlation only


def _default_log_dir() -> str:
    return os.path.join(os.getcwd(), "logs")


class TelemetrySettings(BaseSettings):
    """
    Logger and tracer configuration.
    Strictly typed and validated via Pydantic; frozen once constructed.
    Every field can be supplied through a TRACELOG_* environment variable.
    """

    # --- Service Identity ---
    SERVICE_NAME: str = Field(..., min_length=1)

    # --- Encoding ---
    # JSON lines (True) or human-readable console text (False).
    STRUCTURED: bool

    # --- Sinks ---
    # Resolved once against the working directory at construction time.
    LOG_DIR: str = Field(default_factory=_default_log_dir)
    ENABLE_FILE_SINK: bool = True
    ENABLE_CONSOLE_SINK: bool = True

    # --- Rotation (0 means "use the default") ---
    MAX_FILE_SIZE_MB: int = Field(0, ge=0)
    MAX_AGE_DAYS: int = Field(0, ge=0)
    MAX_BACKUPS: int = Field(0, ge=0)
    COMPRESS_BACKUPS: bool = True
    LOCAL_TIME: bool = True

    # --- Filtering ---
    LOG_LEVEL: Level = Level.INFO

    # --- Tracing ---
    TRACING_ENABLED: bool = False
    SPAN_EXPORTER: SpanExporterKind = SpanExporterKind.CONSOLE
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    SET_GLOBAL_TRACER_PROVIDER: bool = True

    # --- Lifecycle ---
    SHUTDOWN_TIMEOUT_SEC: float = Field(30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="TRACELOG_",
        env_file=".env",
        extra="ignore",
        validate_default=True,
        frozen=True,
    )

    @field_validator("MAX_FILE_SIZE_MB")
    @classmethod
    def _fill_max_file_size(cls, value: int) -> int:
        return value or DEFAULT_MAX_FILE_SIZE_MB

    @field_validator("MAX_AGE_DAYS")
    @classmethod
    def _fill_max_age(cls, value: int) -> int:
        return value or DEFAULT_MAX_AGE_DAYS

    @field_validator("MAX_BACKUPS")
    @classmethod
    def _fill_max_backups(cls, value: int) -> int:
        return value or DEFAULT_MAX_BACKUPS

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _parse_level(cls, value):
        return Level.parse(value)

    @model_validator(mode="after")
    def _check_exporter(self) -> "TelemetrySettings":
        if (
            self.TRACING_ENABLED
            and self.SPAN_EXPORTER == SpanExporterKind.OTLP
            and not self.OTEL_EXPORTER_OTLP_ENDPOINT
        ):
            raise ValueError("SPAN_EXPORTER=otlp requires OTEL_EXPORTER_OTLP_ENDPOINT")
        return self

    # --- Derived Paths ---

    @property
    def LOG_FILE_PATH(self) -> str:
        """<LOG_DIR>/<SERVICE_NAME>.log"""
        return os.path.join(self.LOG_DIR, f"{self.SERVICE_NAME}.log")

    @property
    def MAX_FILE_SIZE_BYTES(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024
