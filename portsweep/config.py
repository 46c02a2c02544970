from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .ports import FULL_PORT_RANGE, MAX_PORT, MIN_PORT

DEFAULT_TIMEOUT_S = 10.0
# Caps in-flight connects; keeps fd and ephemeral port usage well under typical limits.
DEFAULT_CONCURRENCY = 1000
DEFAULT_PROGRESS_EVERY = 5000


@dataclass(frozen=True)
class ScanConfig:
    timeout_s: float = DEFAULT_TIMEOUT_S
    concurrency: int = DEFAULT_CONCURRENCY
    ports: Optional[Sequence[int]] = None
    progress_every: int = DEFAULT_PROGRESS_EVERY

    @property
    def port_list(self) -> Sequence[int]:
        return FULL_PORT_RANGE if self.ports is None else self.ports

    def validate(self) -> "ScanConfig":
        if self.timeout_s <= 0:
            raise ValueError(f"timeout must be > 0 (got {self.timeout_s})")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1 (got {self.concurrency})")
        if self.progress_every < 0:
            raise ValueError(f"progress_every must be >= 0 (got {self.progress_every})")
        if not self.port_list:
            raise ValueError("no ports to scan")
        if min(self.port_list) < MIN_PORT or max(self.port_list) > MAX_PORT:
            raise ValueError(f"ports must be within {MIN_PORT}-{MAX_PORT}")
        return self
