"""Split a media payload into APPEND-sized chunks.

The chunk count is computed with integer ceiling division so that the
final segment boundary is exact for payloads of any size.
"""

from __future__ import annotations

from tweetify.models import Chunk


def chunk_count(total_bytes: int, max_chunk_size: int) -> int:
    """Number of chunks :func:`split_chunks` produces for *total_bytes*.

    A payload that fits in one chunk (including the empty payload) yields
    exactly one chunk.
    """
    if max_chunk_size < 1:
        raise ValueError(f"max_chunk_size must be >= 1, got {max_chunk_size}")
    if total_bytes <= max_chunk_size:
        return 1
    return -(-total_bytes // max_chunk_size)


def split_chunks(data: bytes, max_chunk_size: int) -> list[Chunk]:
    """Partition *data* into ordered chunks of at most *max_chunk_size* bytes.

    Parameters
    ----------
    data:
        The full payload.
    max_chunk_size:
        Maximum bytes per chunk.

    Returns
    -------
    list[Chunk]
        Chunks indexed from 0 with no gaps.  Every chunk but the last is
        exactly *max_chunk_size* bytes; the last holds the remainder (or a
        full *max_chunk_size* when the length divides evenly).  Joining the
        chunk bytes in order reproduces *data*.

    Raises
    ------
    ValueError
        If *max_chunk_size* is less than 1.

    Examples
    --------
    >>> [len(c) for c in split_chunks(b"x" * 5, 2)]
    [2, 2, 1]
    """
    count = chunk_count(len(data), max_chunk_size)
    if count == 1:
        return [Chunk(index=0, data=bytes(data))]

    view = memoryview(data)
    return [
        Chunk(index=i, data=bytes(view[i * max_chunk_size : (i + 1) * max_chunk_size]))
        for i in range(count)
    ]
