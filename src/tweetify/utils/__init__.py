from .chunk import chunk_count, split_chunks
from .redact import redact

__all__ = [
    "chunk_count",
    "split_chunks",
    "redact",
]
