# tracelog/shared/__init__.py
"""
Shared infrastructure package.

Wraps the third-party backends the core sits on:
- Configuration management (pydantic-settings)
- Structured logging and its sinks (structlog over stdlib logging)
- Distributed tracing (OpenTelemetry SDK)
"""
