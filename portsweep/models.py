from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class ProbeResult(Enum):
    OPEN = "open"
    CLOSED = "closed"  # closed or filtered, no distinction
    ERROR = "error"


class ScanStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class OpenPortEvent:
    address: str
    port: int


@dataclass(frozen=True)
class ScanProgress:
    scanned: int
    total: int
    open_count: int
    elapsed_s: float

    @property
    def rate(self) -> float:
        return self.scanned / self.elapsed_s if self.elapsed_s > 0 else 0.0


@dataclass(frozen=True)
class ScanSummary:
    status: ScanStatus
    targets: Tuple[str, ...]
    total: int
    scanned: int
    open_count: int
    error_count: int
    started_at: datetime
    finished_at: datetime
    elapsed_s: float
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status is ScanStatus.COMPLETED
