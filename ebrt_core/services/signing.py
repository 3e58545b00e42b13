"""Body serialization, HMAC signatures and idempotency keys for validator calls."""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Optional


def serialize_payload(payload: Any) -> bytes:
    """Compact, key-sorted JSON; these exact bytes are both signed and sent."""
    return json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _ensure_secret_bytes(secret: str | bytes) -> bytes:
    if isinstance(secret, bytes):
        return secret
    return str(secret).encode("utf-8")


def sign_payload(body: bytes, secret: Optional[str | bytes]) -> Optional[str]:
    if not secret:
        return None
    return hmac.new(_ensure_secret_bytes(secret), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str | bytes]) -> bool:
    if not secret or not signature:
        return False
    expected = sign_payload(body, secret)
    return hmac.compare_digest(expected, signature.strip().lower())


def idempotency_key(record_id: Any) -> str:
    # One logical submission per record, however many physical requests it takes.
    return str(record_id)
