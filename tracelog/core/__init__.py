# tracelog/core/__init__.py
"""
Correlation and lifecycle core: GlobalTelemetry, SpanLogger and the
field-derivation rules that stamp log entries with trace identifiers.
"""
