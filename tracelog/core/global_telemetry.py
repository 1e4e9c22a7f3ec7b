# tracelog/core/global_telemetry.py
import atexit
import threading
from typing import Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SpanExporter

from tracelog.core.domain.exceptions import (
    TelemetryClosedError,
    TelemetryNotInitializedError,
    TelemetryShutdownError,
    TracingInitFailedError,
    TracingNotConfiguredError,
)
from tracelog.core.span_logger import SpanLogger
from tracelog.shared.config import TelemetrySettings
from tracelog.shared.logging_config import StructuredLogger, build_logger, get_library_logger
from tracelog.shared.telemetry import build_tracer_provider

logger = get_library_logger(__name__)


class GlobalTelemetry:
    """
    Owns the logger and the tracer provider of one process (or one test).

    Built once with initialize() and passed to whatever logs or traces.
    A background drain worker waits for shutdown() and then tears both
    backends down exactly once: the tracer provider first (flushing
    batched spans), then the log sinks.
    """

    def __init__(
        self,
        settings: TelemetrySettings,
        logger: StructuredLogger,
        tracer_provider: Optional[TracerProvider] = None,
    ):
        self.settings = settings
        self.logger = logger
        self.tracer_provider = tracer_provider

        self._shutdown_requested = threading.Event()
        self._drain_error: Optional[BaseException] = None
        self._error_reported = False
        self._drain_worker = threading.Thread(
            target=self._drain,
            name=f"tracelog-drain-{settings.SERVICE_NAME}",
            daemon=True,
        )
        self._drain_worker.start()
        atexit.register(self.shutdown)

    @classmethod
    def initialize(
        cls,
        settings: TelemetrySettings,
        span_exporter: Optional[SpanExporter] = None,
    ) -> "GlobalTelemetry":
        """
        Builds the logger and, if TRACING_ENABLED, the tracer provider.
        All-or-nothing: on failure nothing built here stays open.

        Raises:
            DirectoryCreateFailedError: the log directory cannot be created.
            TracingInitFailedError: the tracer provider or exporter failed.
        """
        service_logger = build_logger(settings)

        provider = None
        if settings.TRACING_ENABLED:
            try:
                provider = build_tracer_provider(settings, span_exporter)
            except TracingInitFailedError:
                service_logger.close()
                raise
            except Exception as e:
                service_logger.close()
                raise TracingInitFailedError(str(e)) from e

            timeout_millis = int(settings.SHUTDOWN_TIMEOUT_SEC * 1000)
            service_logger.add_exit_hook(lambda: provider.force_flush(timeout_millis))

            if settings.SET_GLOBAL_TRACER_PROVIDER:
                trace.set_tracer_provider(provider)

        logger.info(
            "telemetry_initialized",
            service=settings.SERVICE_NAME,
            tracing=provider is not None,
            log_file=settings.LOG_FILE_PATH if settings.ENABLE_FILE_SINK else None,
        )
        return cls(settings, service_logger, provider)

    @property
    def tracing_enabled(self) -> bool:
        return self.tracer_provider is not None

    @property
    def closed(self) -> bool:
        return self._shutdown_requested.is_set()

    def start_span(self, name: str, parent: Optional[Context] = None) -> SpanLogger:
        """
        Starts a span named ``name`` and returns a SpanLogger bound to it.

        Each call starts a new root span unless ``parent`` (a context
        carrying a span) is passed explicitly.
        """
        if self.tracer_provider is None:
            raise TracingNotConfiguredError()
        if self.closed:
            raise TelemetryClosedError(self.settings.SERVICE_NAME)

        base = parent if parent is not None else Context()
        tracer = self.tracer_provider.get_tracer(name)
        span = tracer.start_span(name, context=base)
        return SpanLogger(
            name=name,
            span=span,
            context=trace.set_span_in_context(span, base),
            logger=self.logger,
        )

    def shutdown(self) -> None:
        """
        Drains spans and log sinks and waits for the drain to finish.
        Safe to call more than once; later calls only wait.

        Raises:
            TelemetryShutdownError: once, if the drain failed.
        """
        self._shutdown_requested.set()
        atexit.unregister(self.shutdown)
        self._drain_worker.join(self.settings.SHUTDOWN_TIMEOUT_SEC)

        if self._drain_worker.is_alive():
            raise TelemetryShutdownError(
                f"drain did not finish within {self.settings.SHUTDOWN_TIMEOUT_SEC}s"
            )
        if self._drain_error is not None and not self._error_reported:
            self._error_reported = True
            raise TelemetryShutdownError(str(self._drain_error)) from self._drain_error

    def _drain(self) -> None:
        self._shutdown_requested.wait()
        try:
            if self.tracer_provider is not None:
                self.tracer_provider.shutdown()
        except Exception as e:
            self._drain_error = e
            logger.error("tracer_shutdown_failed", service=self.settings.SERVICE_NAME, error=str(e))
        finally:
            try:
                self.logger.close()
            except Exception as e:
                self._drain_error = self._drain_error or e
                logger.error("logger_close_failed", service=self.settings.SERVICE_NAME, error=str(e))
        logger.info("telemetry_shutdown_complete", service=self.settings.SERVICE_NAME)

    def __enter__(self) -> "GlobalTelemetry":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()


# --- Process Default Instance ---

_current: Optional[GlobalTelemetry] = None
_current_lock = threading.Lock()


def initialize(settings: TelemetrySettings, span_exporter: Optional[SpanExporter] = None) -> GlobalTelemetry:
    """
    Initializes the process-default telemetry. An existing default
    instance is shut down before the new one is built; a failed drain of
    the old instance is logged and does not stop the new one.
    """
    global _current
    with _current_lock:
        previous, _current = _current, None
        if previous is not None:
            try:
                previous.shutdown()
            except TelemetryShutdownError as e:
                logger.warning(
                    "previous_telemetry_shutdown_failed",
                    service=previous.settings.SERVICE_NAME,
                    error=str(e),
                )
        _current = GlobalTelemetry.initialize(settings, span_exporter)
        return _current


def get_telemetry() -> GlobalTelemetry:
    telemetry = _current
    if telemetry is None:
        raise TelemetryNotInitializedError()
    return telemetry


def start_span(name: str, parent: Optional[Context] = None) -> SpanLogger:
    return get_telemetry().start_span(name, parent)


def shutdown() -> None:
    """Shuts down the process-default telemetry, if any."""
    global _current
    with _current_lock:
        telemetry, _current = _current, None
    if telemetry is not None:
        telemetry.shutdown()
