"""Read-only helpers for JWT bearer tokens.

Signatures are **not** verified here: the server owns token issuance and
verification.  The client only peeks at the payload to learn the ``exp``
claim when a login response does not carry an explicit expiry.

Logging
-------
Tokens are never logged; decoding failures are reported at DEBUG level with
a masked prefix only.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from portal_client.utils.logging import mask_sensitive

_LOG = logging.getLogger("portal-client.core.claims")


def _b64d(data: str) -> bytes:
    """Decode base64-URL data that may lack padding."""
    pad_len = (-len(data)) % 4
    return base64.urlsafe_b64decode(data + "=" * pad_len)


def parse_jwt(token: str) -> dict[str, Any] | None:
    """Return the decoded payload of *token*, or ``None`` if it is not a JWT."""
    try:
        parts = token.split(".")
        if len(parts) != 3:
            raise ValueError("token has an unexpected format")
        claims = json.loads(_b64d(parts[1]).decode("utf-8"))
        if not isinstance(claims, dict):
            raise ValueError("payload is not an object")
        return claims
    except (ValueError, binascii.Error, UnicodeDecodeError, AttributeError) as exc:
        _LOG.debug("Cannot decode token %s: %s", mask_sensitive(token, 6), exc)
        return None


def jwt_expiry(token: str) -> float | None:
    """Return the ``exp`` claim as epoch seconds, if present and numeric."""
    claims = parse_jwt(token)
    if not claims:
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)
