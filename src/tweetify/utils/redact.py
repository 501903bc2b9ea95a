"""Payload redaction for safe logging.

Before any request or response is written to logs or debug dumps the
:func:`redact` function must be applied.  It enforces the following rules:

* **Credentials** (keys containing ``token``, ``secret``, ``oauth``,
  ``authorization``, ...) are masked.  A value containing a recognisable
  credential (the known token, a ``Bearer`` value, OAuth signature or
  token parameters) keeps its surrounding text; any other value is
  replaced with ``<redacted>``.  Only the last four characters of a known
  token survive.
* **Media fields** (``media``, ``media_data``) carrying base64 segment
  bytes are replaced with ``<base64:N_bytes>`` where *N* is the decoded
  size.
* **Raw bytes** are replaced with ``<binary:N_bytes>``.
* The full bearer **token is never present** in the output.
"""

from __future__ import annotations

import copy
import re
from typing import Any

# Substrings: if any of these appear in a key name (case-insensitive), the
# value is redacted.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "oauth",
    "cookie",
    "api_key",
    "consumer_key",
})

# Form fields whose values are base64-encoded media bytes.
_MEDIA_KEYS: frozenset[str] = frozenset({"media", "media_data"})


def _mask_token(value: str, token: str | None) -> str:
    """Replace bearer / token strings with a safe placeholder."""
    if token and token in value:
        suffix = token[-4:] if len(token) >= 4 else "****"
        placeholder = f"<redacted:...{suffix}>"
        if token in placeholder:
            placeholder = "<redacted>"
        value = value.replace(token, placeholder)
    value = re.sub(
        r"(Bearer\s+)\S+",
        lambda m: f"{m.group(1)}<redacted>",
        value,
    )
    value = re.sub(
        r'(oauth_(?:signature|token)=")[^"]*(")',
        lambda m: f"{m.group(1)}<redacted>{m.group(2)}",
        value,
    )
    return value


def _base64_decoded_size(value: str) -> int:
    """Return the decoded byte length of an unwrapped base64 string."""
    stripped = value.strip()
    padding = len(stripped) - len(stripped.rstrip("="))
    return max(len(stripped) * 3 // 4 - padding, 0)


def _redact_value(value: Any, token: str | None) -> Any:
    """Redact a single value (recursive for dicts / lists)."""
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, list):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, str):
        if token:
            value = _mask_token(value, token)
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    """Recursively redact a dictionary."""
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if key_lower in _MEDIA_KEYS and isinstance(value, str):
            result[key] = f"<base64:{_base64_decoded_size(value)}_bytes>"
        elif any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            masked = _mask_token(value, token) if isinstance(value, str) else value
            result[key] = masked if masked != value else "<redacted>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize (form parameters, headers, or a decoded
        response body).
    token:
        The bearer token.  If supplied, any occurrence of this exact string
        anywhere in the payload is replaced.

    Returns
    -------
    dict
        A new dictionary; the original *payload* is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Bearer abc123"})
    {'Authorization': 'Bearer <redacted>'}

    >>> redact({"command": "APPEND", "media": "aGVsbG8="})
    {'command': 'APPEND', 'media': '<base64:5_bytes>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, token)
