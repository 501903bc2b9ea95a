"""tweetify.api -- HTTP transport and endpoint wrappers.

This sub-package provides:

* :mod:`.transport` -- One-exchange HTTP transports with error mapping.
* :mod:`.media` -- INIT / APPEND / FINALIZE / STATUS wrappers.
* :mod:`.statuses` -- Status update wrapper.
"""

from __future__ import annotations

from .media import AsyncMediaAPI, MediaAPI
from .statuses import AsyncStatusAPI, StatusAPI
from .transport import AsyncMediaTransport, MediaTransport

__all__ = [
    "AsyncMediaAPI",
    "AsyncMediaTransport",
    "AsyncStatusAPI",
    "MediaAPI",
    "MediaTransport",
    "StatusAPI",
]
