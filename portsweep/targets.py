from __future__ import annotations

import ipaddress
from typing import List

MAX_ORDINAL = (1 << 32) - 1


class ParseError(ValueError):
    """Raised when a target specification cannot be turned into addresses."""


def parse_ipv4(text: str) -> str:
    """
    Validates a dotted-quad IPv4 literal and returns its canonical form.
    Hostnames, IPv6, CIDR and leading-zero octets are rejected.
    """
    text = text.strip()
    try:
        return str(ipaddress.IPv4Address(text))
    except ValueError as e:
        raise ParseError(f"Invalid IPv4 address '{text}'") from e


def ip_to_int(address: str) -> int:
    """a.b.c.d -> (a<<24)|(b<<16)|(c<<8)|d"""
    a, b, c, d = (int(octet) for octet in parse_ipv4(address).split("."))
    return (a << 24) | (b << 16) | (c << 8) | d


def int_to_ip(ordinal: int) -> str:
    if ordinal < 0 or ordinal > MAX_ORDINAL:
        raise ParseError(f"Address ordinal out of range: {ordinal}")
    return ".".join(str((ordinal >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def expand_range(start: str, end: str) -> List[str]:
    lo = ip_to_int(start)
    hi = ip_to_int(end)
    if lo > hi:
        raise ParseError(f"Invalid range: {start} is after {end}")
    return [int_to_ip(n) for n in range(lo, hi + 1)]


def expand_targets(raw: str) -> List[str]:
    """
    Supports:
      - Single IP: "10.0.0.1"
      - List: "10.0.0.1 10.0.0.7 192.168.1.5" (input order kept)
      - Range: "192.168.1.250-192.168.2.5" (inclusive, ascending)
    """
    if "-" in raw:
        start_s, end_s = raw.split("-", 1)
        return expand_range(start_s, end_s)

    targets = [parse_ipv4(token) for token in raw.split()]
    if not targets:
        raise ParseError("Empty target list")
    return targets
