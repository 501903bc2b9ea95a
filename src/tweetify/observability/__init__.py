"""Observability: structured logging, metrics hooks, and upload events."""

from __future__ import annotations

from .events import EventRecorder, UploadObserver, emit, emit_failure
from .logger import StructuredFormatter, get_logger
from .metrics import MetricsHook, NoopMetricsHook

__all__ = [
    "EventRecorder",
    "MetricsHook",
    "NoopMetricsHook",
    "StructuredFormatter",
    "UploadObserver",
    "emit",
    "emit_failure",
    "get_logger",
]
