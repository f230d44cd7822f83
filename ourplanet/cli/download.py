# ourplanet/cli/download.py
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from ourplanet.config.client import ClientConfig
from ourplanet.logging.logger import setup_logger
from ourplanet.models.snapshot import Snapshot
from ourplanet.progress.reporter import ProgressReporter
from ourplanet.progress.sink import ResultSink
from ourplanet.services.download_categories import download_categories

log = setup_logger(__name__)


class ConsoleProgressReporter(ProgressReporter):
    """Redraws a single ``Download: N%`` line on a terminal."""

    def __init__(self, stream=None) -> None:
        super().__init__()
        self.stream = stream or sys.stdout

    def _progress(self) -> None:
        self.stream.write(f"\r{self.label}")
        self.stream.flush()

    def _complete(self) -> None:
        self.stream.write("\n")
        self.stream.flush()


def format_table(snapshot: Snapshot, *, show_empty: bool = False, limit: int = 200) -> List[str]:
    rows = [c for c in snapshot if show_empty or c.events]

    if not rows:
        return ["No events found for any category."]

    lines = [f"{'CATEGORY':40}  {'EVENTS':>6}  {'OPEN':>6}", "-" * 56]
    for c in rows[:limit]:
        open_count = sum(1 for e in c.events if e.is_open)
        lines.append(f"{c.name[:40]:40}  {len(c.events):>6}  {open_count:>6}")
    return lines


def build_parser(defaults: ClientConfig | None = None) -> argparse.ArgumentParser:
    defaults = defaults or ClientConfig()

    ap = argparse.ArgumentParser(
        prog="ourplanet-download",
        description="Download EONET categories with their recent events.",
    )
    ap.add_argument("--days", type=int, default=defaults.days, help="Event window in days.")
    ap.add_argument(
        "--concurrency", type=int, default=defaults.concurrency,
        help="Maximum category fetches in flight.",
    )
    ap.add_argument("--api", default=defaults.api_base, help="EONET API base URL.")
    ap.add_argument(
        "--timeout", type=int, default=defaults.timeout_seconds,
        help="Per-request timeout in seconds.",
    )
    ap.add_argument("--show-empty", action="store_true", help="List categories without events too.")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    try:
        defaults = ClientConfig.from_env()
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)

    try:
        config = ClientConfig(
            api_base=args.api,
            days=args.days,
            concurrency=args.concurrency,
            timeout_seconds=args.timeout,
        )
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    sink = ResultSink()
    snapshot = asyncio.run(
        download_categories(config, sinks=[sink], reporters=[ConsoleProgressReporter()])
    )

    log.debug("Sink received %d snapshots in %d deliveries", sink.published, sink.deliveries)

    print()
    for line in format_table(snapshot, show_empty=args.show_empty):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
