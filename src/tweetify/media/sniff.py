"""Content-type detection from leading payload bytes.

Signatures follow Gary Kessler's file signature table.  Only the first
eight bytes are inspected; shorter payloads are zero-padded so every input
gets an answer.
"""

from __future__ import annotations

DEFAULT_MIME_TYPE = "application/octet-stream"

_HEAD_LENGTH = 8

# (offset, signature, mime) in match priority order.
_SIGNATURES: list[tuple[int, bytes, str]] = [
    (0, b"\x42\x4d", "image/bmp"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"GIF8", "image/gif"),
    (0, b"RIFF", "image/webp"),
    (4, b"ftyp", "video/mp4"),
]

_MEDIA_CATEGORIES: dict[str, str] = {
    "image/gif": "tweet_gif",
    "video/mp4": "tweet_video",
}


def sniff_mime_type(data: bytes) -> str:
    """Classify *data* by its magic number.

    Parameters
    ----------
    data:
        The payload, or at least its first eight bytes.

    Returns
    -------
    str
        The first matching MIME type from the signature table, or
        ``"application/octet-stream"`` when nothing matches.

    Examples
    --------
    >>> sniff_mime_type(b"\\x89PNG\\r\\n\\x1a\\n")
    'image/png'
    >>> sniff_mime_type(b"\\x00" * 8)
    'application/octet-stream'
    """
    head = bytes(data[:_HEAD_LENGTH]).ljust(_HEAD_LENGTH, b"\x00")
    for offset, signature, mime in _SIGNATURES:
        if head[offset : offset + len(signature)] == signature:
            return mime
    return DEFAULT_MIME_TYPE


def media_category(mime_type: str) -> str:
    """Map a MIME type to the upload endpoint's ``media_category`` hint."""
    if mime_type in _MEDIA_CATEGORIES:
        return _MEDIA_CATEGORIES[mime_type]
    if mime_type.startswith("video/"):
        return "tweet_video"
    return "tweet_image"
