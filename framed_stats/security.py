"""security.py – Interaction request verification

Discord signs every request it sends to the interactions endpoint with the
application's Ed25519 key: the signature in ``X-Signature-Ed25519`` covers the
``X-Signature-Timestamp`` header value followed by the raw request body.
Requests that fail the check must be answered with 401.
"""

from __future__ import annotations

from functools import wraps
from typing import Optional
import logging

from flask import current_app, jsonify, request
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

__all__ = ["SIGNATURE_HEADER", "TIMESTAMP_HEADER", "verify_signature", "require_discord_signature"]

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


def verify_signature(
    public_key: str,
    body: bytes,
    signature: Optional[str],
    timestamp: Optional[str],
) -> bool:
    """Return ``True`` if *signature* is valid for ``timestamp + body``."""
    if not signature or not timestamp:
        return False
    try:
        verify_key = VerifyKey(bytes.fromhex(public_key))
        verify_key.verify(timestamp.encode() + body, bytes.fromhex(signature))
    except (BadSignatureError, ValueError, TypeError):
        return False
    return True


def require_discord_signature(f):
    """
    Decorator rejecting requests that were not signed by Discord.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        public_key = current_app.config.get("DISCORD_PUBLIC_KEY")
        if not public_key:
            logger.error("PUBLIC_KEY is not configured; refusing interaction")
            return jsonify({"error": "interactions endpoint not configured"}), 500

        valid = verify_signature(
            public_key,
            request.get_data(cache=True),
            request.headers.get(SIGNATURE_HEADER),
            request.headers.get(TIMESTAMP_HEADER),
        )
        if not valid:
            logger.warning(
                "Rejected interaction with invalid signature from %s", request.remote_addr or "unknown"
            )
            return jsonify({"error": "Bad request signature"}), 401

        return f(*args, **kwargs)

    return decorated_function
