"""Media pipeline: reading, sniffing, and the chunked upload state machine.

Exports
-------
sniff_mime_type
    Classify a payload by its magic number.
media_category
    Map a MIME type to the INIT ``media_category`` hint.
read_media / async_read_media
    Load a payload from a path or ``file://`` URL.
upload_chunked / async_upload_chunked
    INIT, APPEND×N, FINALIZE.
check_media_status / async_check_media_status
    One STATUS request.
wait_for_processing / async_wait_for_processing
    Poll STATUS until processing finishes.
UploadStateMachine
    Track upload lifecycle state and enforce valid transitions.
"""

from .sniff import DEFAULT_MIME_TYPE, media_category, sniff_mime_type
from .source import async_read_media, read_media, resolve_source
from .state import UploadStateMachine
from .upload import (
    async_check_media_status,
    async_upload_chunked,
    async_wait_for_processing,
    check_media_status,
    upload_chunked,
    wait_for_processing,
)

__all__ = [
    "DEFAULT_MIME_TYPE",
    "UploadStateMachine",
    "async_check_media_status",
    "async_read_media",
    "async_upload_chunked",
    "async_wait_for_processing",
    "check_media_status",
    "media_category",
    "read_media",
    "resolve_source",
    "sniff_mime_type",
    "upload_chunked",
    "wait_for_processing",
]
