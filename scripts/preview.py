"""Preview how an inbound SCIM request is rewritten for the downstream endpoint.

This module serves as a CLI wrapper around scim_proxy.core.scim_transformer.

Examples:
    python scripts/preview.py put /tenant/scim/v2/Groups/g1 --body group.json
    cat patch.json | python scripts/preview.py patch /tenant/scim/v2/Groups/g1 --live
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from scim_proxy.core.models import Method
from scim_proxy.core.scim_transformer import normalize
from scim_proxy.core.upstream import DirectoryService, UpstreamClient, UpstreamError
from scim_proxy.core.validators import InvalidPayloadError, MethodNotAllowedError


def _read_body(source: str | None):
    if source is None or source == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(source).read_text()
    return json.loads(raw) if raw.strip() else None


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Preview SCIM request rewriting")
    parser.add_argument("method", help="HTTP method of the inbound request (get, post, put, patch, delete)")
    parser.add_argument("path", help="Resource path, e.g. /<tenant>/scim/v2/Groups/<id>")
    parser.add_argument("--body", default=None, help="JSON body file ('-' or omitted reads stdin)")
    parser.add_argument("--live", action="store_true",
                        help="Resolve current group members against PROXY_URL (otherwise members are skipped)")
    parser.add_argument("--proxy-url", default=os.environ.get("PROXY_URL"))
    parser.add_argument("--header", action="append", default=[], metavar="NAME:VALUE",
                        help="Header forwarded to directory lookups (repeatable)")

    args = parser.parse_args(argv)

    try:
        method = Method.from_http(args.method)
    except MethodNotAllowedError as exc:
        print(f"[preview] {exc}", file=sys.stderr)
        return 2

    headers = {}
    for header in args.header:
        name, _, value = header.partition(":")
        headers[name.strip()] = value.strip()

    try:
        body = _read_body(args.body)
    except (OSError, ValueError) as exc:
        print(f"[preview] Could not read body: {exc}", file=sys.stderr)
        return 2

    fetch_members = None
    if args.live:
        if not args.proxy_url:
            print("[preview] --live requires --proxy-url or PROXY_URL", file=sys.stderr)
            return 2
        directory = DirectoryService(UpstreamClient(args.proxy_url))
        fetch_members = directory.member_fetcher(headers)

    try:
        normalized = normalize(method, headers, args.path, body, fetch_members)
    except InvalidPayloadError as exc:
        print(f"[preview] Invalid body: {exc}", file=sys.stderr)
        return 1
    except UpstreamError as exc:
        print(f"[preview] Directory lookup failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(normalized.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
