# File: lexistack_app/modules/sync/cli.py
"""
lexistack-sync: submit a content batch from a JSON file.

    lexistack-sync --file payload.json [--wait] [--request-id ID] [--source NAME] [--url URL]

Reads LEXI_SYNC_URL, LEXI_SYNC_SHARED_SECRET, LEXI_SYNC_SOURCE and
LEXI_SYNC_RETRIES from the environment (a .env file is loaded first).
Exit code 0 when the batch was accepted (and, with --wait, succeeded).
"""

import argparse
import json
import sys

from dotenv import load_dotenv

from .client import SyncClient
from .exceptions import SyncClientError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='lexistack-sync', description='Submit a dictionary batch to LexiStack')
    parser.add_argument('--file', required=True, help='Path to payload JSON ({lang, entries: [...]})')
    parser.add_argument('--wait', action='store_true', help='Poll until the job finishes')
    parser.add_argument('--request-id', dest='request_id', help='Idempotency key (default: payload requestId or a UUID)')
    parser.add_argument('--source', help='Source name sent with the batch')
    parser.add_argument('--url', help='Sync endpoint URL (default: LEXI_SYNC_URL)')
    return parser


def _print(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def main(argv=None, client_factory=SyncClient.from_env) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        with open(args.file, encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        print(f'Cannot read payload: {e}', file=sys.stderr)
        return 1

    try:
        client = client_factory(url=args.url, source=args.source)
        accepted = client.submit(payload, request_id=args.request_id)
        _print(accepted)
        if not args.wait:
            return 0
        outcome = client.wait_for_completion(accepted['requestId'])
        _print(outcome)
        return 0 if outcome['ok'] else 1
    except SyncClientError as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
