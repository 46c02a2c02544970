from __future__ import annotations

from typing import List

MIN_PORT = 1
MAX_PORT = 65535
FULL_PORT_RANGE = range(MIN_PORT, MAX_PORT + 1)


def parse_ports(spec: str) -> List[int]:
    """
    Comma-separated ports and inclusive "lo-hi" ranges, e.g. "1-1024,8080".
    Every item is treated as a range (a bare port is "p-p"); the result is
    sorted and deduplicated. Non-numeric items, ports outside 1-65535 and
    an empty result raise ValueError.
    """
    spec = spec.strip()
    if not spec:
        raise ValueError("Empty port spec")

    ports: List[int] = []
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            if "-" in part:
                start_s, end_s = part.split("-", 1)
                start, end = int(start_s), int(end_s)
            else:
                start = end = int(part)
        except ValueError as e:
            raise ValueError(f"Invalid port spec: {part}") from e
        if start < MIN_PORT or end > MAX_PORT or start > end:
            raise ValueError(f"Invalid port range: {part}")
        ports.extend(range(start, end + 1))

    if not ports:
        raise ValueError("Empty port spec")
    # De-dupe, keep sorted
    return sorted(set(ports))
