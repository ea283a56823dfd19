"""Observability helpers."""

from recoverdash.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_history_scan,
    record_folder_skip,
    record_content_read,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_history_scan",
    "record_folder_skip",
    "record_content_read",
]
