# tracelog/shared/logging_config.py
import logging
import os
import sys
import uuid
from typing import Any, Callable, Iterable, List, Optional, Tuple

import structlog
from structlog.exceptions import DropEvent

from tracelog.core.domain.exceptions import DirectoryCreateFailedError, LoggedPanicError
from tracelog.core.domain.models import Field, Level
from tracelog.core.fields import collect_fields, resolve_fields
from tracelog.shared.config import TelemetrySettings
from tracelog.shared.rotation import CompressingRotatingFileHandler

FieldPair = Tuple[str, Any]

LOG_DIR_MODE = 0o755

# Event-dict key holding the call's (key, value) pairs until rendering.
FIELD_PAIRS_KEY = "_tracelog_fields"

# Rendered first in JSON output, in this order.
HEADER_KEYS = ("timestamp", "level", "message")

# Keyword arguments consumed by structlog processors rather than emitted.
RENDER_DIRECTIVES = ("exc_info", "stack_info")


def get_library_logger(name: str):
    """
    structlog logger for tracelog's own diagnostics, over the stdlib
    logger ``name``. Whether and where it is written is up to the host's
    logging configuration.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


logger = get_library_logger(__name__)


def add_log_level(_, method_name, event_dict):
    """
    Processor writing the level label. Method names on the sink are the
    Level labels, so 'dpanic' and 'panic' survive (stdlib has no such names).
    """
    event_dict["level"] = method_name
    return event_dict


def ensure_log_directory(path: str) -> None:
    """Creates ``path`` and any missing parents, and checks it is writable."""
    if not os.path.isdir(path):
        try:
            os.makedirs(path, mode=LOG_DIR_MODE, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailedError(path, e.strerror or str(e)) from e
    if not os.access(path, os.W_OK | os.X_OK):
        raise DirectoryCreateFailedError(path, "directory is not writable")


class FieldPairsJSONRenderer(structlog.processors.JSONRenderer):
    """
    JSONRenderer that writes the call's field pairs as they were given:
    in order, with repeated keys kept. The header keys come first, then
    bound context, then the fields.
    """

    def __call__(self, logger, name, event_dict):
        pairs = event_dict.pop(FIELD_PAIRS_KEY, ())
        members = [(key, event_dict.pop(key)) for key in HEADER_KEYS if key in event_dict]
        members.extend(event_dict.items())
        members.extend(pairs)
        # Each member goes through the configured serializer on its own.
        rendered = [self._dumps({key: value}, **self._dumps_kw)[1:-1] for key, value in members]
        return "{" + ", ".join(rendered) + "}"


class FieldPairsConsoleRenderer(structlog.dev.ConsoleRenderer):
    """ConsoleRenderer that appends the field pairs as key=value, repeats included."""

    def __call__(self, logger, name, event_dict):
        pairs = event_dict.pop(FIELD_PAIRS_KEY, ())
        trailer = [event_dict.pop(key) for key in ("stack", "exception") if key in event_dict]
        line = super().__call__(logger, name, event_dict)
        if pairs:
            rendered = (f"{key}={value if isinstance(value, str) else repr(value)}" for key, value in pairs)
            line = line.rstrip() + " " + " ".join(rendered)
        for text in trailer:
            line += "\n" + text
        return line


class LevelSink:
    """
    The object structlog hands rendered events to.

    Exposes one method per Level label and forwards to a private stdlib
    logger, whose handlers (console, rotating file) do the actual writing.
    """

    def __init__(self, logger: logging.Logger, level: Level = Level.INFO):
        self._logger = logger
        self.level = level
        self._exit_hooks: List[Callable[[], Any]] = []

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._logger.handlers)

    def is_enabled_for(self, level: Level) -> bool:
        return not self._logger.disabled and level >= self.level

    def set_level(self, level: Level) -> None:
        self.level = level

    def _write(self, level: Level, *args, **kwargs) -> None:
        self._logger.log(level, *args, **kwargs)

    def debug(self, *args, **kwargs):
        self._write(Level.DEBUG, *args, **kwargs)

    def info(self, *args, **kwargs):
        self._write(Level.INFO, *args, **kwargs)

    def warn(self, *args, **kwargs):
        self._write(Level.WARN, *args, **kwargs)

    def error(self, *args, **kwargs):
        self._write(Level.ERROR, *args, **kwargs)

    def dpanic(self, *args, **kwargs):
        self._write(Level.DPANIC, *args, **kwargs)

    def panic(self, *args, **kwargs):
        self._write(Level.PANIC, *args, **kwargs)

    def fatal(self, *args, **kwargs):
        self._write(Level.FATAL, *args, **kwargs)

    def sync(self) -> None:
        for handler in self._logger.handlers:
            handler.flush()

    def add_exit_hook(self, hook: Callable[[], Any]) -> None:
        self._exit_hooks.append(hook)

    def terminate(self, code: int = 1) -> None:
        """
        Ends the process from whatever thread calls it. Sinks are flushed
        and exit hooks run first; a failing hook does not stop the exit.
        """
        self.sync()
        for hook in self._exit_hooks:
            try:
                hook()
            except Exception:
                logger.exception("exit_hook_failed", hook=repr(hook))
        os._exit(code)

    def close(self) -> None:
        """Flushes and closes every sink. Later writes are dropped."""
        self._logger.disabled = True
        for handler in list(self._logger.handlers):
            try:
                handler.flush()
            finally:
                handler.close()
                self._logger.removeHandler(handler)
        self._logger.addHandler(logging.NullHandler())


class StructuredLogger(structlog.BoundLoggerBase):
    """
    Leveled structlog logger writing to the configured sinks.

    Fields arrive as ordered (key, value) pairs and are rendered as given:
    nothing is merged by key, so repeated keys are all emitted and a field
    named like a header key (``level``, ``message``) does not replace it.

    FATAL ends the process with exit code 1 after writing, from any thread.
    """

    _logger: LevelSink

    def log(self, level: Level, message: str, pairs: Iterable[FieldPair] = ()) -> None:
        level = Level.parse(level)
        if self._logger.is_enabled_for(level):
            event_kw = {FIELD_PAIRS_KEY: []}
            for key, value in pairs:
                if key in RENDER_DIRECTIVES:
                    event_kw[key] = value
                else:
                    event_kw[FIELD_PAIRS_KEY].append((key, value))
            try:
                args, kw = self._process_event(level.label, message, event_kw)
            except DropEvent:
                pass
            else:
                getattr(self._logger, level.label)(*args, **kw)
                if level > Level.ERROR:
                    self._logger.sync()

        # Terminal behaviour applies whether or not the entry was written.
        if level == Level.PANIC:
            raise LoggedPanicError(message)
        if level == Level.FATAL:
            self._logger.terminate(1)

    def _log_fields(self, level: Level, message: str, fields: Tuple[Field, ...], kw: dict) -> None:
        self.log(level, message, resolve_fields(collect_fields(fields, kw)))

    def debug(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.DEBUG, message, fields, kw)

    def info(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.INFO, message, fields, kw)

    def warn(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.WARN, message, fields, kw)

    warning = warn

    def error(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.ERROR, message, fields, kw)

    def dpanic(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.DPANIC, message, fields, kw)

    def panic(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.PANIC, message, fields, kw)

    def fatal(self, message: str, /, *fields: Field, **kw: Any) -> None:
        self._log_fields(Level.FATAL, message, fields, kw)

    @property
    def sinks(self) -> List[logging.Handler]:
        return self._logger.handlers

    def enabled_for(self, level: Level) -> bool:
        return self._logger.is_enabled_for(Level.parse(level))

    def set_level(self, level: Level) -> None:
        self._logger.set_level(Level.parse(level))

    def sync(self) -> None:
        self._logger.sync()

    def add_exit_hook(self, hook: Callable[[], Any]) -> None:
        """Registers ``hook`` to run just before a FATAL entry ends the process."""
        self._logger.add_exit_hook(hook)

    def close(self) -> None:
        self._logger.close()


def build_processors(settings: TelemetrySettings) -> list:
    """Chain run on every entry, before the per-sink renderer."""
    return [
        structlog.contextvars.merge_contextvars,   # Merge context bound with bind_contextvars
        add_log_level,                             # Add "level": "info"
        structlog.processors.TimeStamper(fmt="iso", utc=not settings.LOCAL_TIME, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,      # Render exc_info fields as text
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def build_formatter(settings: TelemetrySettings, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    if settings.STRUCTURED:
        # Production: machine-readable JSON lines
        processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.EventRenamer("message"),
            FieldPairsJSONRenderer(),
        ]
    else:
        # Development: human-readable text, fields in emission order
        processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            FieldPairsConsoleRenderer(colors=colors, sort_keys=False),
        ]
    return structlog.stdlib.ProcessorFormatter(processors=processors)


def build_handlers(settings: TelemetrySettings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if settings.ENABLE_FILE_SINK:
        ensure_log_directory(settings.LOG_DIR)
        file_handler = CompressingRotatingFileHandler(
            settings.LOG_FILE_PATH,
            max_bytes=settings.MAX_FILE_SIZE_BYTES,
            backup_count=settings.MAX_BACKUPS,
            max_age_days=settings.MAX_AGE_DAYS,
            compress=settings.COMPRESS_BACKUPS,
            local_time=settings.LOCAL_TIME,
        )
        file_handler.setFormatter(build_formatter(settings, colors=False))
        handlers.append(file_handler)

    if settings.ENABLE_CONSOLE_SINK:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(build_formatter(settings, colors=sys.stdout.isatty()))
        handlers.append(console_handler)

    return handlers


def build_logger(settings: TelemetrySettings, handlers: Optional[List[logging.Handler]] = None) -> StructuredLogger:
    """
    Builds an independent StructuredLogger for ``settings``.

    The backing stdlib logger is created outside the logging registry, so
    every call yields a separate instance with its own sinks.
    """
    if handlers is None:
        handlers = build_handlers(settings)

    # Left at NOTSET; LevelSink owns the minimum level.
    std_logger = logging.Logger(f"tracelog.{settings.SERVICE_NAME}.{uuid.uuid4().hex[:8]}")
    std_logger.propagate = False
    for handler in handlers:
        std_logger.addHandler(handler)
    if not handlers:
        # Keeps stdlib from falling back to its last-resort stderr handler.
        std_logger.addHandler(logging.NullHandler())

    return StructuredLogger(LevelSink(std_logger, settings.LOG_LEVEL), processors=build_processors(settings), context={})
