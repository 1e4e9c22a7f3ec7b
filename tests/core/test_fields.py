# tests/core/test_fields.py
import re

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import TracerProvider

from tracelog.core.domain.models import Field, field, field_error
from tracelog.core.fields import (
    SERVICE_KEY,
    SPAN_ID_KEY,
    TRACE_ID_KEY,
    collect_fields,
    derive_fields,
    resolve_fields,
    span_ids,
)


def _span_context():
    provider = TracerProvider()
    span = provider.get_tracer("test").start_span("op", context=Context())
    return span, trace.set_span_in_context(span, Context())


class TestResolveFields:
    def test_preserves_order_and_duplicates(self):
        fields = [field("b", 1), field("a", "x"), field("b", 2)]
        assert resolve_fields(fields) == [("b", 1), ("a", "x"), ("b", 2)]

    def test_drops_absent_entries_only(self):
        fields = [field_error(None), field("zero", 0), field("empty", ""), Field(key="gone")]
        assert resolve_fields(fields) == [("zero", 0), ("empty", "")]


class TestCollectFields:
    def test_positional_then_keywords(self):
        collected = collect_fields([field("a", 1)], {"c": 3, "b": 2})
        assert [f.key for f in collected] == ["a", "c", "b"]

    def test_no_keywords(self):
        assert collect_fields([], None) == []


class TestDeriveFields:
    def test_correlation_fields_are_appended(self):
        """
        Scenario: a context carrying a live span and two caller fields.
        Expected: caller fields first, then traceId, spanId, service.
        """
        span, ctx = _span_context()

        pairs = derive_fields(ctx, "op1", [field("key", "value"), field("n", 0)])

        assert [k for k, _ in pairs] == ["key", "n", TRACE_ID_KEY, SPAN_ID_KEY, SERVICE_KEY]
        values = dict(pairs)
        assert values["key"] == "value"
        assert values["n"] == 0
        assert re.fullmatch(r"[0-9a-f]{32}", values[TRACE_ID_KEY])
        assert re.fullmatch(r"[0-9a-f]{16}", values[SPAN_ID_KEY])
        assert values[TRACE_ID_KEY] == format(span.get_span_context().trace_id, "032x")
        assert values[SERVICE_KEY] == "op1"

    def test_invalid_span_gives_empty_ids(self):
        pairs = derive_fields(Context(), "op1", [])
        assert pairs == [(TRACE_ID_KEY, ""), (SPAN_ID_KEY, ""), (SERVICE_KEY, "op1")]

    def test_colliding_caller_keys_are_not_dropped(self):
        _, ctx = _span_context()
        pairs = derive_fields(ctx, "op1", [field(SERVICE_KEY, "mine")])
        assert pairs[0] == (SERVICE_KEY, "mine")
        assert pairs[-1] == (SERVICE_KEY, "op1")


class TestSpanIds:
    def test_ended_span_keeps_ids(self):
        span, ctx = _span_context()
        span.end()
        trace_id, span_id = span_ids(ctx)
        assert len(trace_id) == 32
        assert len(span_id) == 16
