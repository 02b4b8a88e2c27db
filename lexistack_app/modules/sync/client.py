# File: lexistack_app/modules/sync/client.py
"""
Sync Client
===========
Submits content batches to the sync endpoint and optionally waits for them.

Every attempt is signed with a fresh timestamp. 5xx responses and transport
errors are retried with exponential backoff (0.5s, 1s, 2s, ...); 4xx responses
fail immediately.
"""

import logging
import os
import time
import uuid
from typing import Callable, Dict, Optional

import requests

from .exceptions import SyncClientError
from .logics.signing import (
    HEADER_REQUEST_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    canonical_json,
    sign,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = 'content-pipeline'
DEFAULT_RETRIES = 4
BACKOFF_BASE_SECONDS = 0.5
TERMINAL_STATUSES = ('success', 'failed')


def _response_json(response) -> Dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class SyncClient:

    def __init__(self, url: str, secret: str, source: str = DEFAULT_SOURCE, retries: int = DEFAULT_RETRIES,
                 session=None, sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.time, timeout: float = 30):
        if not url:
            raise SyncClientError('LEXI_SYNC_URL is required')
        if not secret:
            raise SyncClientError('LEXI_SYNC_SHARED_SECRET is required')
        self.url = url.rstrip('/')
        self.secret = secret
        self.source = source or DEFAULT_SOURCE
        self.retries = max(1, int(retries))
        self.session = session or requests.Session()
        self.sleep = sleep
        self.clock = clock
        self.timeout = timeout

    @classmethod
    def from_env(cls, url: Optional[str] = None, source: Optional[str] = None, **kwargs) -> 'SyncClient':
        try:
            retries = int(os.environ.get('LEXI_SYNC_RETRIES', DEFAULT_RETRIES))
        except ValueError:
            retries = DEFAULT_RETRIES
        return cls(
            url=(url or os.environ.get('LEXI_SYNC_URL', '')).strip(),
            secret=os.environ.get('LEXI_SYNC_SHARED_SECRET', '').strip(),
            source=(source or os.environ.get('LEXI_SYNC_SOURCE', DEFAULT_SOURCE)).strip(),
            retries=retries,
            **kwargs,
        )

    @property
    def status_url(self) -> str:
        return f'{self.url}/status'

    def build_body(self, payload: Dict, request_id: Optional[str] = None) -> Dict:
        payload = payload if isinstance(payload, dict) else {}
        req = str(request_id or payload.get('requestId') or uuid.uuid4()).strip()
        entries = payload.get('entries')
        if not isinstance(entries, list) or not entries:
            raise SyncClientError('Payload must include non-empty entries[]')
        return {
            'requestId': req,
            'source': self.source,
            'payloadVersion': str(payload.get('payloadVersion') or '1'),
            'lang': str(payload.get('lang') or 'en'),
            'actorUsername': str(payload.get('actorUsername') or '').strip() or None,
            'entries': entries,
        }

    def _headers(self, request_id: str, body: bytes) -> Dict[str, str]:
        timestamp = str(int(self.clock()))
        return {
            HEADER_TIMESTAMP: timestamp,
            HEADER_REQUEST_ID: request_id,
            HEADER_SIGNATURE: sign(self.secret, timestamp, request_id, body),
        }

    def submit(self, payload: Dict, request_id: Optional[str] = None) -> Dict:
        """POST a batch. Returns ``{ok, requestId, accepted, response}``."""
        body = self.build_body(payload, request_id)
        req = body['requestId']
        data = canonical_json(body)

        last_error = None
        for attempt in range(1, self.retries + 1):
            headers = self._headers(req, data)
            headers['Content-Type'] = 'application/json'
            try:
                response = self.session.post(self.url, data=data, headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                last_error = SyncClientError(f'Sync request failed: {e}', retriable=True)
            else:
                response_json = _response_json(response)
                if response.ok:
                    return {'ok': True, 'requestId': req, 'accepted': True, 'response': response_json}
                error = SyncClientError(
                    f'Sync failed: {response.status_code} {response_json}',
                    status_code=response.status_code,
                    retriable=response.status_code >= 500,
                )
                if not error.retriable:
                    raise error
                last_error = error

            if attempt < self.retries:
                delay = BACKOFF_BASE_SECONDS * 2 ** (attempt - 1)
                logger.warning("Sync attempt %d/%d for %s failed (%s), retrying in %.1fs",
                               attempt, self.retries, req, last_error, delay)
                self.sleep(delay)
        raise last_error

    def get_status(self, request_id: str) -> Optional[Dict]:
        """One status poll. Returns ``None`` on a transient failure."""
        headers = self._headers(request_id, canonical_json({}))
        try:
            response = self.session.get(
                self.status_url, params={'requestId': request_id}, headers=headers, timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Status poll for %s failed: %s", request_id, e)
            return None
        data = _response_json(response)
        if response.ok:
            return data
        if response.status_code >= 500:
            logger.warning("Status poll for %s returned %s", request_id, response.status_code)
            return None
        raise SyncClientError(
            f'Status request failed: {response.status_code} {data}', status_code=response.status_code,
        )

    def wait_for_completion(self, request_id: str, max_polls: int = 60, interval_seconds: float = 2) -> Dict:
        """Poll until the job is ``success`` or ``failed``; raises after ``max_polls`` polls."""
        for poll in range(max_polls):
            data = self.get_status(request_id)
            status = (data or {}).get('status')
            if status in TERMINAL_STATUSES:
                job = data.get('job') or {}
                return {
                    'ok': status == 'success',
                    'requestId': request_id,
                    'status': status,
                    'result': job.get('result'),
                    'error': job.get('errorMessage') or '',
                }
            if poll < max_polls - 1:
                self.sleep(interval_seconds)
        raise SyncClientError('Timed out while waiting for sync job completion')
