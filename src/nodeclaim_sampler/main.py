"""CLI entrypoint for the node/NodeClaim sampler."""

from __future__ import annotations

import argparse
import csv
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from nodeclaim_sampler import __version__
from nodeclaim_sampler.config import Settings, get_settings
from nodeclaim_sampler.observation import ClusterResourceStore
from nodeclaim_sampler.sampling import (
    CsvSink,
    DestinationExistsError,
    RecordEmitter,
    Sampler,
    check_destination,
    open_destination,
)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sample Kubernetes node and Karpenter NodeClaim counts to CSV.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output CSV file; rows are always written to stdout as well",
    )
    parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force overwrite if the output file exists",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds to wait between rows (default: from env or 5)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Concurrent workers per collection (default: from env or 16)",
    )
    parser.add_argument(
        "--kubeconfig",
        type=Path,
        default=None,
        help="Path to kubeconfig (default: KUBECONFIG env or ~/.kube/config)",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubernetes context to use",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def _apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """Override settings with the flags given on the command line."""
    if args.output:
        settings.output = args.output
    if args.force:
        settings.force = True
    if args.interval is not None:
        settings.interval_seconds = max(0.0, args.interval)
    if args.workers is not None:
        settings.workers = max(1, args.workers)
    if args.kubeconfig:
        settings.kubeconfig = args.kubeconfig
    if args.context:
        settings.context = args.context
    return settings


def print_summary(sampler: Sampler, console: Console | None = None) -> None:
    """Print emitted/skipped cycle counts to stderr using Rich."""
    c = console or Console(stderr=True)
    c.print(
        Panel(
            f"Rows emitted: {sampler.cycles_emitted}\nCycles skipped: {sampler.cycles_skipped}",
            title="nodeclaim-sampler",
            border_style="blue",
        )
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint for nodeclaim-sampler CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )
    logger = logging.getLogger("nodeclaim_sampler")
    if not args.verbose:
        logger.setLevel(logging.WARNING)

    try:
        settings = _apply_args(get_settings(), args)
    except ValidationError as e:
        print(f"Error: invalid settings: {e}", file=sys.stderr)
        return 2

    if settings.output:
        try:
            check_destination(settings.output, settings.force)
        except DestinationExistsError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    try:
        store = ClusterResourceStore(
            kubeconfig=str(settings.kubeconfig) if settings.kubeconfig else None,
            context=settings.context,
            page_size=settings.page_size,
            request_timeout=settings.request_timeout_seconds,
        )
    except Exception as e:
        logging.exception("Failed to load cluster configuration")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    destination = None
    if settings.output:
        try:
            destination = open_destination(settings.output, settings.force)
        except DestinationExistsError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except OSError as e:
            print(f"Error: cannot open {settings.output}: {e}", file=sys.stderr)
            return 1

    streams = [destination, sys.stdout] if destination is not None else [sys.stdout]
    emitter = RecordEmitter(CsvSink(streams))
    shutdown_event = threading.Event()
    sampler = Sampler(store, emitter, settings, shutdown_event)

    def handle_signal(signum: int, frame: Any) -> None:
        logging.getLogger(__name__).info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    previous = {
        sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        emitter.write_header()
        sampler.run()
        return 0
    except (OSError, csv.Error) as e:
        logging.exception("Failed to write sample row")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if destination is not None:
            destination.close()
        print_summary(sampler)


if __name__ == "__main__":
    sys.exit(main())
