"""Canonical JSON signing shared with the remote agents.

The agent recomputes the HMAC over its own serialization of the request, so
both sides must produce byte-identical JSON for the same fields: keys sorted
at every level, arrays in order, no whitespace, non-ASCII emitted as UTF-8.
Values are signed exactly as sent; never normalize numbers or strings here.
"""

import hashlib
import hmac
import json
from typing import Any, Mapping

SIGNATURE_FIELD = "signature"


def _deep_sort(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _deep_sort(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_deep_sort(item) for item in value]
    return value


def canonicalize(value: Any) -> str:
    """Serialize ``value`` as compact JSON with recursively sorted keys."""
    return json.dumps(
        _deep_sort(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def sign(body: Mapping[str, Any], secret: str) -> str:
    """
    Compute the lowercase hex HMAC-SHA256 of a request body.

    The ``signature`` field, if present, is excluded from its own input.
    """
    unsigned = {key: value for key, value in body.items() if key != SIGNATURE_FIELD}
    message = canonicalize(unsigned).encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify(body: Mapping[str, Any], signature: str, secret: str) -> bool:
    """Check ``signature`` against ``body`` in constant time."""
    if not signature:
        return False
    return hmac.compare_digest(sign(body, secret), signature.lower())
