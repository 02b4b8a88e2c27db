"""
Signing Logic - HMAC request signatures for the content sync channel.

This module contains ONLY pure Python logic.
NO database, NO Flask, NO model dependencies allowed.

signature = "sha256=" + hex(hmac_sha256(secret, f"{timestamp}.{request_id}.{sha256(body)}"))
"""
import hashlib
import hmac
import json
from typing import Any, Optional

HEADER_TIMESTAMP = 'x-sync-timestamp'
HEADER_REQUEST_ID = 'x-sync-request-id'
HEADER_SIGNATURE = 'x-sync-signature'
SIGNATURE_PREFIX = 'sha256='


def canonical_json(payload: Any) -> bytes:
    """Compact UTF-8 JSON; the client sends and hashes exactly these bytes."""
    return json.dumps(payload, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def body_hash(body: bytes) -> str:
    return hashlib.sha256(body or b'').hexdigest()


def sign(secret: str, timestamp: str, request_id: str, body: bytes) -> str:
    message = f'{timestamp}.{request_id}.{body_hash(body)}'.encode('utf-8')
    digest = hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def signature_matches(expected: str, given: Optional[str]) -> bool:
    """Constant-time comparison of two signature strings."""
    if not given:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), given.strip().encode('utf-8'))


def timestamp_within_skew(timestamp: Optional[str], now_seconds: float, max_skew_seconds: int) -> bool:
    """
    True when ``timestamp`` (unix seconds as a string) is within ``max_skew_seconds`` of now.

    Examples:
        >>> timestamp_within_skew('1000', 1100, 300)
        True
        >>> timestamp_within_skew('1000', 1400, 300)
        False
        >>> timestamp_within_skew('soon', 1000, 300)
        False
    """
    try:
        ts = int(str(timestamp).strip())
    except (TypeError, ValueError):
        return False
    return abs(now_seconds - ts) <= max_skew_seconds
