# tracelog/shared/telemetry.py
from typing import Optional

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from tracelog import __version__
from tracelog.core.domain.exceptions import TracingInitFailedError
from tracelog.shared.config import SpanExporterKind, TelemetrySettings
from tracelog.shared.logging_config import get_library_logger

logger = get_library_logger(__name__)


def build_span_exporter(settings: TelemetrySettings) -> Optional[SpanExporter]:
    """
    Exporter selected by SPAN_EXPORTER.
    Returns None for 'none': spans still get ids for log correlation.
    """
    if settings.SPAN_EXPORTER == SpanExporterKind.OTLP:
        if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
            raise TracingInitFailedError("OTLP exporter selected without OTEL_EXPORTER_OTLP_ENDPOINT")
        endpoint = f"{settings.OTEL_EXPORTER_OTLP_ENDPOINT.rstrip('/')}/v1/traces"
        logger.info("span_exporter_selected", exporter="otlp", endpoint=endpoint)
        return OTLPSpanExporter(endpoint=endpoint)

    if settings.SPAN_EXPORTER == SpanExporterKind.CONSOLE:
        # Prints each span as indented JSON on stdout
        return ConsoleSpanExporter(service_name=settings.SERVICE_NAME)

    return None


def build_tracer_provider(
    settings: TelemetrySettings,
    span_exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    """
    Builds an always-sampling TracerProvider exporting through a batch
    pipeline. ``span_exporter`` overrides the configured exporter.
    Registration as the process-wide provider is left to the caller.
    """
    # 1. Define Resource (Service Identity)
    resource = Resource.create(attributes={
        "service.name": settings.SERVICE_NAME,
        "service.version": __version__,
    })

    # 2. Configure Tracer Provider (GlobalTelemetry owns the shutdown)
    provider = TracerProvider(resource=resource, sampler=ALWAYS_ON, shutdown_on_exit=False)

    # 3. Configure Exporter
    exporter = span_exporter if span_exporter is not None else build_span_exporter(settings)
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))

    return provider
