from __future__ import annotations

import errno
import logging
import socket
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Generator, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .config import DEFAULT_CONCURRENCY, DEFAULT_PROGRESS_EVERY, DEFAULT_TIMEOUT_S, ScanConfig
from .models import OpenPortEvent, ProbeResult, ScanProgress, ScanStatus, ScanSummary

logger = logging.getLogger(__name__)

ProbeFn = Callable[[str, int, float], ProbeResult]
ProgressFn = Callable[[ScanProgress], None]

# Dispatcher wake-up interval, so cancel() is seen even when nothing completes.
POLL_INTERVAL_S = 0.2

# Local resource exhaustion (fds, ephemeral ports) says nothing about the target;
# such connects are retried until a resource frees up or the run is cancelled.
_RESOURCE_ERRNOS = {errno.EMFILE, errno.ENFILE, errno.ENOBUFS, errno.EADDRNOTAVAIL}
_RESOURCE_BACKOFF_S = 0.05
_RESOURCE_BACKOFF_MAX_S = 1.0


def _connect_once(target: str, port: int, timeout_s: float) -> Optional[ProbeResult]:
    sock: Optional[socket.socket] = None
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(timeout_s)
        sock.connect((target, port))
        return ProbeResult.OPEN
    except socket.gaierror:
        return ProbeResult.ERROR
    except (socket.timeout, ConnectionRefusedError, OSError) as e:
        if e.errno in _RESOURCE_ERRNOS:
            return None
        return ProbeResult.CLOSED
    finally:
        if sock:
            sock.close()


def tcp_probe(
    target: str,
    port: int,
    timeout_s: float,
    cancel: Optional[threading.Event] = None,
) -> ProbeResult:
    """
    Plain connect() reachability check: nothing is sent or read, the socket
    is closed as soon as the handshake completes.

    If the local host runs out of sockets or ephemeral ports the attempt is
    repeated with capped backoff. Setting `cancel` abandons the wait and the
    port is reported as not open.
    """
    attempt = 0
    while True:
        result = _connect_once(target, port, timeout_s)
        if result is not None:
            return result
        if attempt == 0:
            logger.debug("Local resources exhausted probing %s:%d, waiting", target, port)
        delay = min(_RESOURCE_BACKOFF_S * (2 ** attempt), _RESOURCE_BACKOFF_MAX_S)
        attempt += 1
        if cancel is None:
            time.sleep(delay)
        elif cancel.wait(delay):
            return ProbeResult.CLOSED


def iter_jobs(targets: Iterable[str], ports: Sequence[int]) -> Iterator[Tuple[str, int]]:
    for t in targets:
        for p in ports:
            yield (t, p)


class ScanRun:
    """
    One sweep of every (target, port) pair.

    Iterate it to receive OpenPortEvents as probes finish. In-flight probes
    are capped at config.concurrency and the pending future set is bounded,
    so the job list is never materialised. Once iteration ends the worker
    pool has been joined and summary() is available.
    """

    def __init__(
        self,
        targets: Iterable[str],
        config: Optional[ScanConfig] = None,
        probe: Optional[ProbeFn] = None,
        progress_cb: Optional[ProgressFn] = None,
    ):
        self.targets: Tuple[str, ...] = tuple(targets)
        if not self.targets:
            raise ValueError("No targets to scan")
        self.config = (config or ScanConfig()).validate()
        self.ports = self.config.port_list
        self.total = len(self.targets) * len(self.ports)

        self._cancel = threading.Event()
        # The default probe stops waiting on local resources once the run is cancelled.
        self._probe: ProbeFn = probe or partial(tcp_probe, cancel=self._cancel)
        self._progress_cb = progress_cb
        self._events: Optional[Generator[OpenPortEvent, None, None]] = None
        self._error: Optional[BaseException] = None
        self._t0 = 0.0

        self.status = ScanStatus.PENDING
        self.scanned = 0
        self.open_count = 0
        self.error_count = 0
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self.elapsed_s: Optional[float] = None

    def __iter__(self) -> Generator[OpenPortEvent, None, None]:
        if self._events is None:
            self._events = self._run()
        return self._events

    def cancel(self) -> None:
        """Stop dispatching; in-flight probes finish or time out. Thread-safe."""
        if not self._cancel.is_set():
            logger.info("Cancellation requested (%d/%d probes done)", self.scanned, self.total)
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def finished(self) -> bool:
        return self.status in (ScanStatus.COMPLETED, ScanStatus.CANCELLED, ScanStatus.FAILED)

    def progress(self) -> ScanProgress:
        elapsed = self.elapsed_s
        if elapsed is None:
            elapsed = time.perf_counter() - self._t0 if self.started_at else 0.0
        return ScanProgress(
            scanned=self.scanned,
            total=self.total,
            open_count=self.open_count,
            elapsed_s=elapsed,
        )

    def summary(self) -> ScanSummary:
        if not self.finished:
            raise RuntimeError("Scan has not finished yet")
        return ScanSummary(
            status=self.status,
            targets=self.targets,
            total=self.total,
            scanned=self.scanned,
            open_count=self.open_count,
            error_count=self.error_count,
            started_at=self.started_at,
            finished_at=self.finished_at,
            elapsed_s=self.elapsed_s,
            error=repr(self._error) if self._error is not None else None,
        )

    def collect(self) -> Tuple[List[OpenPortEvent], ScanSummary]:
        events = list(self)
        return events, self.summary()

    def _probe_job(self, target: str, port: int) -> Tuple[str, int, ProbeResult]:
        return target, port, self._probe(target, port, self.config.timeout_s)

    def _record(self, result: ProbeResult) -> None:
        self.scanned += 1
        if result is ProbeResult.OPEN:
            self.open_count += 1
        elif result is ProbeResult.ERROR:
            self.error_count += 1

        every = self.config.progress_every
        if self._progress_cb and every > 0 and (self.scanned % every == 0 or self.scanned == self.total):
            self._progress_cb(self.progress())

    def _run(self) -> Generator[OpenPortEvent, None, None]:
        self.status = ScanStatus.RUNNING
        self.started_at = datetime.now(timezone.utc)
        self._t0 = time.perf_counter()
        logger.info(
            "Scan started: %d target(s) x %d port(s) = %d probes (concurrency=%d, timeout=%.2fs)",
            len(self.targets),
            len(self.ports),
            self.total,
            self.config.concurrency,
            self.config.timeout_s,
        )

        jobs = iter_jobs(self.targets, self.ports)
        max_pending = max(self.config.concurrency * 4, 100)
        pending: Set[Future] = set()

        try:
            with ThreadPoolExecutor(
                max_workers=self.config.concurrency,
                thread_name_prefix="portsweep-probe",
            ) as pool:

                def submit_next() -> bool:
                    if self._cancel.is_set():
                        return False
                    try:
                        t, p = next(jobs)
                    except StopIteration:
                        return False
                    pending.add(pool.submit(self._probe_job, t, p))
                    return True

                try:
                    # Prime the queue
                    while len(pending) < max_pending and submit_next():
                        pass

                    while pending:
                        done, pending = wait(pending, timeout=POLL_INTERVAL_S, return_when=FIRST_COMPLETED)
                        if self._cancel.is_set():
                            # Drop queued jobs; running ones stay until they finish.
                            pending = {f for f in pending if not f.cancel()}

                        for fut in done:
                            target, port, result = fut.result()
                            self._record(result)
                            if result is ProbeResult.OPEN:
                                yield OpenPortEvent(address=target, port=port)

                        # Refill queue
                        while len(pending) < max_pending and submit_next():
                            pass
                finally:
                    for fut in pending:
                        fut.cancel()
            # Pool joined: every dispatched probe has returned.
        except (GeneratorExit, KeyboardInterrupt):
            self._cancel.set()
            raise
        except Exception as e:
            self._error = e
            logger.error("Scan aborted by probe failure: %r", e)
            raise
        finally:
            self._finish()

    def _finish(self) -> None:
        self.elapsed_s = time.perf_counter() - self._t0
        self.finished_at = datetime.now(timezone.utc)
        if self._error is not None:
            self.status = ScanStatus.FAILED
        elif self._cancel.is_set() or self.scanned < self.total:
            self.status = ScanStatus.CANCELLED
        else:
            self.status = ScanStatus.COMPLETED

        logger.info(
            "Scan %s: %d/%d probes, %d open, %d errors in %.2fs",
            self.status.value,
            self.scanned,
            self.total,
            self.open_count,
            self.error_count,
            self.elapsed_s,
        )


def scan(
    targets: Iterable[str],
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    concurrency: int = DEFAULT_CONCURRENCY,
    ports: Optional[Sequence[int]] = None,
    probe: Optional[ProbeFn] = None,
    progress_cb: Optional[ProgressFn] = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
) -> ScanRun:
    config = ScanConfig(
        timeout_s=timeout_s,
        concurrency=concurrency,
        ports=ports,
        progress_every=progress_every,
    )
    return ScanRun(targets, config, probe=probe, progress_cb=progress_cb)
