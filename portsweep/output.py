from __future__ import annotations

import sys
from typing import Optional, TextIO

from .models import OpenPortEvent, ScanProgress, ScanSummary


def format_event(ev: OpenPortEvent) -> str:
    return f"Target: {ev.address} | Port {ev.port}: open"


def format_progress(p: ScanProgress) -> str:
    return f"[*] Scanned {p.scanned}/{p.total} | open={p.open_count} | {p.rate:.0f} scans/s"


def format_summary(s: ScanSummary) -> str:
    line = (
        f"Scan {s.status.value}: {s.open_count} open port(s) across {len(s.targets)} target(s), "
        f"{s.scanned}/{s.total} probes in {s.elapsed_s:.2f}s"
    )
    if s.error_count:
        line += f" ({s.error_count} probe errors)"
    return line


def print_event(ev: OpenPortEvent, stream: Optional[TextIO] = None) -> None:
    print(format_event(ev), file=stream or sys.stdout, flush=True)


class ProgressPrinter:
    """Rewrites a single status line in place; call done() before printing anything else."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr
        self.active = False

    def __call__(self, p: ScanProgress) -> None:
        print(f"\r{format_progress(p)}", end="", file=self.stream, flush=True)
        self.active = True

    def done(self) -> None:
        if self.active:
            print(file=self.stream)  # newline after progress
            self.active = False


def print_summary(s: ScanSummary, stream: Optional[TextIO] = None) -> None:
    print(format_summary(s), file=stream or sys.stdout)
