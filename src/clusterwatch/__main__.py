"""Command-line entry point: ``python -m clusterwatch``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys

from clusterwatch.config import WatcherConfig
from clusterwatch.exceptions import ClusterWatchError, WatcherConfigError
from clusterwatch.service import ClusterWatcher

_logger = logging.getLogger("clusterwatch")

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_FATAL = 2


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="clusterwatch",
        description="Watch etcd node advertisements and forward state changes to the Hub.",
    )
    parser.add_argument(
        "--root",
        default=None,
        help="etcd directory to watch (overrides $WATCH_ROOT_PATH, default /service/).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


async def _run(config: WatcherConfig) -> int:
    loop = asyncio.get_running_loop()
    async with ClusterWatcher(config) as watcher:
        task = asyncio.create_task(watcher.run())
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, task.cancel)
        try:
            await task
        except asyncio.CancelledError:
            _logger.info("Stopping watcher")
            return EXIT_OK
        except ClusterWatchError as exc:
            _logger.error("Fatal watch error: %s", exc)
            return EXIT_FATAL
        except Exception:
            _logger.exception("Unexpected watch failure")
            return EXIT_FATAL
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(sig)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {"watch_root": args.root} if args.root else {}
    try:
        config = WatcherConfig.from_env(**overrides)
    except WatcherConfigError as exc:
        for problem in exc.problems or [str(exc)]:
            print(problem, file=sys.stderr)
        return EXIT_CONFIG

    return asyncio.run(_run(config))


if __name__ == "__main__":
    sys.exit(main())
