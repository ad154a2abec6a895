"""Parsing of services listings and searching for free TCP ports."""

from __future__ import annotations

import re
from collections.abc import Collection, Iterator

from termcolor import colored

MAX_PORT = 65535

PORT_RANGES: tuple[tuple[int, int], ...] = (
    (1024, 49151),   # registered ports
    (49152, 65535),  # dynamic / private ports
)

_PORT_RE = re.compile(r"\+?[0-9]+")


def _parse_port(text: str) -> int | None:
    """Return ``text`` as a port number, or None if it is not a valid one."""
    if not _PORT_RE.fullmatch(text):
        return None
    port = int(text)
    return port if port <= MAX_PORT else None


def _tcp_ports(content: str) -> Iterator[int]:
    for line in content.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        parts = stripped.split()
        if len(parts) < 2:
            continue
        service_name, port_protocol = parts[0], parts[1]
        if service_name.lower() == "unknown":
            continue
        pair = port_protocol.split("/")
        if len(pair) != 2:
            continue
        port_text, protocol = pair
        if protocol.lower() != "tcp":
            continue
        port = _parse_port(port_text)
        if port is not None:
            yield port


def parse_services_content(
    content: str, source_description: str, verbose: bool = False
) -> set[int]:
    """Collect the distinct TCP ports named in a services-style listing.

    Comment lines, blank lines, entries for the ``unknown`` service and
    non-TCP entries are ignored.
    """
    if verbose:
        print(colored(f"Parsing services data from {source_description}...", "cyan"))
    ports = set(_tcp_ports(content))
    if verbose:
        print(
            colored(
                f"Found {len(ports)} distinct TCP ports from {source_description}.",
                "cyan",
            )
        )
    return ports


def find_available_ports(
    forbidden_ports: Collection[int], num_ports: int, continuous: bool = False
) -> list[int]:
    """Find ``num_ports`` ports not in ``forbidden_ports``.

    The registered range is searched before the dynamic range. With
    ``continuous`` the result is the first block of consecutive free ports
    lying wholly inside one range, or an empty list if there is none.
    Otherwise the first free ports are returned, possibly fewer than asked.
    """
    if not 0 <= num_ports <= MAX_PORT:
        raise ValueError(f"number of ports must be between 0 and {MAX_PORT}")
    if num_ports == 0:
        return []

    forbidden = forbidden_ports if isinstance(forbidden_ports, (set, frozenset)) else frozenset(forbidden_ports)

    if continuous:
        for start, end in PORT_RANGES:
            run_start = start
            for port in range(start, end + 1):
                if port in forbidden:
                    run_start = port + 1
                elif port - run_start + 1 == num_ports:
                    return list(range(run_start, port + 1))
        return []

    found: list[int] = []
    for start, end in PORT_RANGES:
        for port in range(start, end + 1):
            if port not in forbidden:
                found.append(port)
                if len(found) == num_ports:
                    return found
    return found