"""
Tests for sync request signing.

Tests cover:
- Canonical JSON bytes
- Signature format and verification
- Timestamp skew window
"""

import hashlib
import hmac

from lexistack_app.modules.sync.logics.signing import (
    SIGNATURE_PREFIX,
    body_hash,
    canonical_json,
    sign,
    signature_matches,
    timestamp_within_skew,
)


class TestSigning:

    def test_canonical_json_is_compact_utf8(self):
        assert canonical_json({'a': 1, 'b': [1, 2]}) == b'{"a":1,"b":[1,2]}'
        assert canonical_json({'w': 'Straße'}) == '{"w":"Straße"}'.encode('utf-8')
        assert canonical_json({}) == b'{}'

    def test_signature_matches_reference_formula(self):
        body = canonical_json({'requestId': 'req-1'})
        digest = hashlib.sha256(body).hexdigest()
        expected = hmac.new(b'secret', f'1700000000.req-1.{digest}'.encode(), hashlib.sha256).hexdigest()

        signature = sign('secret', '1700000000', 'req-1', body)
        assert signature == SIGNATURE_PREFIX + expected
        assert body_hash(body) == digest

    def test_signature_depends_on_every_part(self):
        body = b'{}'
        base = sign('secret', '1', 'req', body)
        assert sign('other', '1', 'req', body) != base
        assert sign('secret', '2', 'req', body) != base
        assert sign('secret', '1', 'req2', body) != base
        assert sign('secret', '1', 'req', b'{"x":1}') != base

    def test_signature_matches(self):
        signature = sign('secret', '1', 'req', b'{}')
        assert signature_matches(signature, signature) is True
        assert signature_matches(signature, f'  {signature} ') is True
        assert signature_matches(signature, 'sha256=deadbeef') is False
        assert signature_matches(signature, None) is False

    def test_timestamp_window(self):
        assert timestamp_within_skew('1000', 1300, 300) is True
        assert timestamp_within_skew('1000', 700, 300) is True
        assert timestamp_within_skew('1000', 1301, 300) is False
        assert timestamp_within_skew(None, 1000, 300) is False
