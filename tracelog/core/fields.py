# tracelog/core/fields.py
"""
Field derivation for correlated log entries.

Given the caller's fields and the trace context a SpanLogger is bound to,
produces the ordered (key, value) pairs handed to the logger:

    caller fields (absent ones dropped), traceId, spanId, service

The correlation fields always come last. Caller keys are not reserved, and
nothing is de-duplicated at this stage.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from opentelemetry import trace
from opentelemetry.context import Context

from tracelog.core.domain.models import Field

TRACE_ID_KEY = "traceId"
SPAN_ID_KEY = "spanId"
SERVICE_KEY = "service"

FieldPair = Tuple[str, Any]


def collect_fields(fields: Iterable[Field], kwargs: Optional[Mapping[str, Any]] = None) -> List[Field]:
    """Positional Field entries first, then keyword arguments in call order."""
    collected = list(fields)
    if kwargs:
        collected.extend(Field(key=key, value=value) for key, value in kwargs.items())
    return collected


def resolve_fields(fields: Iterable[Field]) -> List[FieldPair]:
    return [(f.key, f.value) for f in fields if not f.is_absent]


def span_ids(context: Optional[Context]) -> Tuple[str, str]:
    """
    Hex trace id (32 chars) and span id (16 chars) of the span carried by
    ``context``, or two empty strings if it carries no valid span.
    """
    span_context = trace.get_current_span(context).get_span_context()
    if not span_context.is_valid:
        return "", ""
    return (
        trace.format_trace_id(span_context.trace_id),
        trace.format_span_id(span_context.span_id),
    )


def derive_fields(context: Optional[Context], service: str, fields: Iterable[Field]) -> List[FieldPair]:
    pairs = resolve_fields(fields)
    trace_id, span_id = span_ids(context)
    pairs.append((TRACE_ID_KEY, trace_id))
    pairs.append((SPAN_ID_KEY, span_id))
    pairs.append((SERVICE_KEY, service))
    return pairs
