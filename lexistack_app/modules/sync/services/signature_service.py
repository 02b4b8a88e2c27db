# File: lexistack_app/modules/sync/services/signature_service.py
"""Verification of signed sync requests."""

import time
from typing import Callable, Mapping, Optional

from flask import current_app

from lexistack_app.core.error_handlers import ServiceUnavailableError, SignatureError, ValidationError

from ..logics.signing import (
    HEADER_REQUEST_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    sign,
    signature_matches,
    timestamp_within_skew,
)


class SignatureService:

    @staticmethod
    def verify(headers: Mapping, body: bytes, body_request_id: Optional[str] = None,
               now: Optional[Callable[[], float]] = None) -> str:
        """
        Check the sync headers against ``body``. Returns the verified request id.

        Raises:
            ServiceUnavailableError: no shared secret configured.
            SignatureError: missing headers, stale timestamp or bad signature.
            ValidationError: ``body_request_id`` differs from the header.
        """
        secret = current_app.config.get('SYNC_SHARED_SECRET') or ''
        if not secret:
            raise ServiceUnavailableError('Sync is not configured')

        timestamp = (headers.get(HEADER_TIMESTAMP) or '').strip()
        request_id = (headers.get(HEADER_REQUEST_ID) or '').strip()
        signature = (headers.get(HEADER_SIGNATURE) or '').strip()
        if not timestamp or not request_id or not signature:
            raise SignatureError('Missing sync signature headers')

        max_skew = int(current_app.config.get('SYNC_MAX_CLOCK_SKEW_SECONDS', 300))
        if not timestamp_within_skew(timestamp, (now or time.time)(), max_skew):
            raise SignatureError('Sync timestamp outside the allowed window')

        if body_request_id is not None and str(body_request_id).strip() != request_id:
            raise ValidationError('requestId does not match x-sync-request-id')

        if not signature_matches(sign(secret, timestamp, request_id, body), signature):
            raise SignatureError('Invalid sync signature')
        return request_id
