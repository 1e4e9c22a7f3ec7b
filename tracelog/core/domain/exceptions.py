# tracelog/core/domain/exceptions.py
class TelemetryError(Exception):
    """Base class for all tracelog exceptions."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

# --- Initialization Errors ---

class DirectoryCreateFailedError(TelemetryError):
    """Raised when the log directory is missing and cannot be created."""
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to create log directory '{path}': {reason}")

class TracingInitFailedError(TelemetryError):
    """Raised when the tracer provider or its exporter cannot be constructed."""
    def __init__(self, reason: str):
        super().__init__(f"Failed to initialize tracing: {reason}")

# --- Usage Errors ---

class TracingNotConfiguredError(TelemetryError):
    """Raised when a span is requested but tracing was not enabled at initialization."""
    def __init__(self):
        super().__init__("Tracing is not configured; set TRACING_ENABLED to start spans.")

class SpanAlreadyEndedError(TelemetryError):
    """Raised when a SpanLogger is used after its span was ended."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Span '{name}' has already ended.")

class TelemetryNotInitializedError(TelemetryError):
    """Raised when the process-default telemetry is used before initialize()."""
    def __init__(self):
        super().__init__("Telemetry has not been initialized.")

class TelemetryClosedError(TelemetryError):
    """Raised when a telemetry instance is used after shutdown."""
    def __init__(self, service_name: str):
        super().__init__(f"Telemetry for '{service_name}' has been shut down.")

# --- Lifecycle Errors ---

class TelemetryShutdownError(TelemetryError):
    """Raised when draining the tracer provider or the log sinks fails."""
    def __init__(self, reason: str):
        super().__init__(f"Telemetry shutdown failed: {reason}")

class LoggedPanicError(TelemetryError):
    """Raised after an entry is written at PANIC level."""
