"""
Project utility layer: reusable infrastructure primitives shared across the daily log relay.

This package depends only on the Python standard library and vetted third-party libraries
(Rich for console logging, structlog for JSONL telemetry) so higher layers can import helpers
without pulling in business logic.
"""

from __future__ import annotations

from .context import ContextBridge
from .logging import configure_logging
from .tracing import TraceSpan, trace_span

__all__ = [
    "ContextBridge",
    "TraceSpan",
    "configure_logging",
    "trace_span",
]
