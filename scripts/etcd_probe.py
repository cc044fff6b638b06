#!/usr/bin/env python3
"""Passive etcd probe for advertisement traffic.

Watches the configured root and prints every event, marking which ones the
watcher would treat as node advertisements.  Nothing is sent to the Hub.

Use this to check key layout and heartbeat cadence before pointing the
watcher at a real Hub.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from clusterwatch._constants import DEFAULT_WATCH_ROOT  # noqa: E402
from clusterwatch._etcd import EtcdWatcher, watch_events  # noqa: E402
from clusterwatch._redact import redact_url  # noqa: E402
from clusterwatch.config import EtcdEndpoint  # noqa: E402
from clusterwatch.exceptions import EtcdError  # noqa: E402
from clusterwatch.ingestion.classify import EventKind, classify_event, describe_action  # noqa: E402
from clusterwatch.keys import NodeKeyParser  # noqa: E402


@dataclass
class ProbeStats:
    started_at: float
    total_events: int = 0
    matched: int = 0
    expired: int = 0
    decode_failed: int = 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Passive etcd probe for node advertisements.")
    parser.add_argument(
        "--etcd",
        default=os.environ.get("ETCD_URI", ""),
        help="etcd URI (default: $ETCD_URI).",
    )
    parser.add_argument(
        "--root",
        default=os.environ.get("WATCH_ROOT_PATH") or DEFAULT_WATCH_ROOT,
        help="Directory to watch (default: $WATCH_ROOT_PATH or /service/).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Also print events for keys that are not node advertisements.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s     : {runtime:.1f}")
    print(f"[probe]   total_events  : {stats.total_events}")
    print(f"[probe]   matched       : {stats.matched}")
    print(f"[probe]   expired       : {stats.expired}")
    print(f"[probe]   decode_failed : {stats.decode_failed}")


async def _probe(endpoint: EtcdEndpoint, args: argparse.Namespace, stats: ProbeStats) -> None:
    parser = NodeKeyParser(args.root)
    async with aiohttp.ClientSession() as http:
        watcher = EtcdWatcher(endpoint, parser.root, http)
        async for event in watch_events(watcher, retry_delay=1.0):
            stats.total_events += 1
            identity = parser.parse(event.key)
            if identity is None:
                if args.all:
                    print(f"[probe] -     {event.action}: {event.key} {event.value}")
                continue

            stats.matched += 1
            classified = classify_event(event, identity)
            if classified.kind is EventKind.EXPIRE:
                stats.expired += 1
            if classified.decode_failed:
                stats.decode_failed += 1
            print(f"[probe] node  {identity.node} {describe_action(event.action)} -> {classified.status}")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    endpoint = EtcdEndpoint.parse(args.etcd)
    if endpoint is None:
        print(f"[probe] Missing or malformed etcd URI: '{redact_url(args.etcd)}'", file=sys.stderr)
        return 1

    print(f"[probe] etcd : {endpoint.url}")
    print(f"[probe] root : {args.root}")

    stats = ProbeStats(started_at=time.time())
    timeout = args.duration if args.duration > 0 else None
    try:
        asyncio.run(asyncio.wait_for(_probe(endpoint, args, stats), timeout=timeout))
    except (KeyboardInterrupt, TimeoutError):
        pass
    except EtcdError as exc:
        print(f"[probe] Watch failed: {exc}", file=sys.stderr)
        _print_summary(stats)
        return 2

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    sys.exit(_main())
