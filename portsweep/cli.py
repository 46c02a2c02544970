from __future__ import annotations

import argparse
import logging
import sys

from .config import DEFAULT_CONCURRENCY, DEFAULT_PROGRESS_EVERY, DEFAULT_TIMEOUT_S, ScanConfig
from .models import ScanStatus
from .output import ProgressPrinter, print_event, print_summary
from .ports import parse_ports
from .scanner import ScanRun
from .targets import ParseError, expand_targets

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_CANCELLED = 130

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Concurrent TCP connect sweep of IPv4 targets")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--target", help='IP, space-separated IPs, or range "A-B" (prompted if omitted)')
    src.add_argument("--target-file", help="Read the target specification from a file")
    p.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help=f"Connect timeout seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    p.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Max in-flight probes (default: {DEFAULT_CONCURRENCY})",
    )
    p.add_argument("--ports", default="1-65535", help="Port spec: 1-1024 or 22,80,443 or mixed (default: 1-65535)")
    p.add_argument(
        "--progress-every",
        type=int,
        default=DEFAULT_PROGRESS_EVERY,
        help=f"Progress update interval, 0 disables (default: {DEFAULT_PROGRESS_EVERY})",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def read_target_spec(args: argparse.Namespace) -> str:
    if args.target is not None:
        return args.target
    if args.target_file is not None:
        with open(args.target_file, encoding="utf-8") as f:
            # Newlines act as list separators.
            return " ".join(f.read().split())
    return input("Enter target(s): ")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        ports = parse_ports(args.ports)
        config = ScanConfig(
            timeout_s=args.timeout,
            concurrency=args.concurrency,
            ports=ports,
            progress_every=args.progress_every,
        ).validate()
    except ValueError as e:
        parser.error(str(e))

    try:
        targets = expand_targets(read_target_spec(args))
    except ParseError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (OSError, EOFError) as e:
        print(f"error: could not read targets: {e}", file=sys.stderr)
        return EXIT_USAGE
    except KeyboardInterrupt:
        print(file=sys.stderr)
        logger.warning("Interrupted before the scan started")
        return EXIT_CANCELLED

    print(f"[*] Targets: {len(targets)} | Ports: {len(ports)} | Total scans: {len(targets) * len(ports)}")

    progress = ProgressPrinter()
    run = ScanRun(targets, config, progress_cb=progress if args.progress_every > 0 else None)
    events = iter(run)
    try:
        for ev in events:
            progress.done()
            print_event(ev)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user, waiting for in-flight probes")
        # No-op if the interrupt already unwound the generator.
        events.close()
    finally:
        progress.done()

    summary = run.summary()
    print_summary(summary)
    if summary.status is ScanStatus.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
