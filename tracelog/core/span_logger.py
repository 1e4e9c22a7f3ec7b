# tracelog/core/span_logger.py
import threading
from typing import Any

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Status, StatusCode

from tracelog.core.domain.exceptions import SpanAlreadyEndedError
from tracelog.core.domain.models import Field, Level
from tracelog.core.fields import collect_fields, derive_fields, span_ids
from tracelog.shared.logging_config import StructuredLogger, get_library_logger

logger = get_library_logger(__name__)


class SpanLogger:
    """
    Logger bound to one span.

    Every entry carries the span's trace id, span id and the operation name.
    The span is owned exclusively by this object and ended exactly once,
    either through end() or by leaving a ``with`` block:

        with telemetry.start_span("checkout") as log:
            log.info("cart_loaded", items=3)
    """

    def __init__(self, name: str, span: trace.Span, context: Context, logger: StructuredLogger):
        self.name = name
        self.span = span
        self.context = context
        self._logger = logger
        self._ended = False
        self._lock = threading.Lock()

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def trace_id(self) -> str:
        return span_ids(self.context)[0]

    @property
    def span_id(self) -> str:
        return span_ids(self.context)[1]

    def log(self, level: Level, message: str, /, *fields: Field, **kw: Any) -> None:
        if self._ended:
            raise SpanAlreadyEndedError(self.name)
        pairs = derive_fields(self.context, self.name, collect_fields(fields, kw))
        if Level.parse(level) == Level.FATAL:
            # The process ends inside the write, so the span is closed first
            # and left for the exit flush.
            self.span.set_status(Status(StatusCode.ERROR, message))
            self.end()
        self._logger.log(level, message, pairs)

    def debug(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.DEBUG, message, *fields, **kw)

    def info(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.INFO, message, *fields, **kw)

    def warn(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.WARN, message, *fields, **kw)

    warning = warn

    def error(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.ERROR, message, *fields, **kw)

    def dpanic(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.DPANIC, message, *fields, **kw)

    def panic(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.PANIC, message, *fields, **kw)

    def fatal(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.FATAL, message, *fields, **kw)

    def end(self) -> None:
        with self._lock:
            if self._ended:
                logger.debug("span_end_ignored", span=self.name)
                return
            self._ended = True
        self.span.end()

    def __enter__(self) -> "SpanLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None and not self._ended:
            self.span.record_exception(exc)
            self.span.set_status(Status(StatusCode.ERROR, str(exc)))
        self.end()

    def __repr__(self) -> str:
        state = "ended" if self._ended else "started"
        return f"<SpanLogger {self.name!r} {state}>"
