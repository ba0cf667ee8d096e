"""Command line entry point: show the active billing window once or continuously."""

from __future__ import annotations

import argparse
import sys
import time
from datetime import datetime, timezone
from typing import Optional, Sequence

from .coordinator import get_active_billing_window, load_and_group_sessions_incremental
from .display import display_active_window
from .scanner import SessionScanner
from .types import SessionBlock, is_block_active
from .watcher import SessionWatcher

_VERSION = "0.1.0"
_CLEAR_SCREEN = "\x1b[2J\x1b[1;1H"
_POLL_INTERVAL = 0.1
_FULL_RELOAD_INTERVAL = 5.0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clauditor",
        description="Track active Claude Code billing windows across multiple sessions",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Watch for file changes and continuously update the display",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments and run in one-shot or watch mode."""
    args = _build_parser().parse_args(argv)
    if args.watch:
        return run_watch_mode()
    return run_one_shot_mode()


def run_one_shot_mode() -> int:
    """Print the current billing window once."""
    try:
        window = get_active_billing_window()
    except (OSError, ValueError) as exc:
        print(f"Error loading sessions: {exc}", file=sys.stderr)
    else:
        display_active_window(window)
    return 0


def run_watch_mode() -> int:
    """Redraw the billing window on file changes and every few seconds until interrupted."""
    scanner = SessionScanner()
    current: Optional[SessionBlock] = None

    try:
        watcher: Optional[SessionWatcher] = SessionWatcher.with_default_paths()
    except (OSError, RuntimeError) as exc:
        print(f"Warning: Could not set up file watching: {exc}", file=sys.stderr)
        print("Will rely on periodic refresh only", file=sys.stderr)
        watcher = None

    needs_refresh = True
    needs_full_reload = True
    last_reload: Optional[float] = None

    try:
        while True:
            if watcher is not None and watcher.poll_events():
                needs_refresh = True
                try:
                    current = load_and_group_sessions_incremental(scanner)
                except (OSError, ValueError) as exc:
                    print(f"Error loading incremental sessions: {exc}", file=sys.stderr)

            if needs_refresh or needs_full_reload:
                print(_CLEAR_SCREEN, end="")
                if needs_full_reload:
                    try:
                        current = get_active_billing_window(scanner)
                    except (OSError, ValueError) as exc:
                        print(f"Error loading sessions: {exc}", file=sys.stderr)
                    else:
                        display_active_window(current)
                    needs_full_reload = False
                else:
                    if current is not None:
                        current.is_active = is_block_active(current, datetime.now(timezone.utc))
                    display_active_window(
                        current if current is not None and current.is_active else None
                    )
                needs_refresh = False
                sys.stdout.flush()

            time.sleep(_POLL_INTERVAL)

            moment = time.monotonic()
            if last_reload is None or moment - last_reload >= _FULL_RELOAD_INTERVAL:
                needs_full_reload = True
                last_reload = moment
    except KeyboardInterrupt:
        pass
    finally:
        if watcher is not None:
            watcher.close()

    print("\nShutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())