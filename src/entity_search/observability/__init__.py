"""Observability module for logging, tracing and metrics."""

from entity_search.observability.context import get_trace_context, set_trace_context, trace_context
from entity_search.observability.logging import JsonFormatter, configure_logging
from entity_search.observability.metrics import (
    SEARCH_LATENCY,
    SEARCH_PARTICIPANT_FAILURES,
    SEARCH_REQUESTS,
    init_metrics,
    track_latency,
    write_metrics,
)
from entity_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "SEARCH_LATENCY",
    "SEARCH_PARTICIPANT_FAILURES",
    "SEARCH_REQUESTS",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
    "write_metrics",
]
