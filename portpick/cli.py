"""Command-line interface: gather forbidden ports and suggest free ones."""

from __future__ import annotations

import argparse
import random
import re
import subprocess
import sys
from collections.abc import Sequence

import requests
from termcolor import colored

from portpick.core import MAX_PORT, PORT_RANGES, find_available_ports, parse_services_content

SYSTEM_SERVICES_PATH = "/etc/services"
REMOTE_NMAP_SERVICES_URL = "https://svn.nmap.org/nmap/nmap-services"
LOCAL_NMAP_CACHE_PATH = "src/nmap-services.cache"

VERSION = "1.6.9"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
REQUEST_TIMEOUT = 30

TOTAL_SEARCHABLE_PORTS = sum(end - start + 1 for start, end in PORT_RANGES)

PORT_COLORS = ("red", "yellow", "green", "cyan", "blue", "magenta")

KNOWN_INFO_PATTERNS = (
    "File limit higher than batch size",
    "Starting Script(s)",
    "Running script",
    "Depending on the complexity",
    "Starting Nmap",
    "Initiating Ping Scan",
    "Scanning ",
    "Completed Ping Scan",
    "Initiating Connect Scan",
    "Discovered open port ",
    "Completed Connect Scan",
    "Nmap scan report for",
    "Host is up",
    "Scanned at",
    "PORT ",
    "Read data files from",
    "Nmap done",
    "/tcp ",
    "/udp ",
)

_PORT_RE = re.compile(r"\+?[0-9]+")


class PortpickError(Exception):
    """Raised when port data cannot be gathered."""


def _info(message: str) -> None:
    print(colored(message, "cyan"))


def _warn(message: str) -> None:
    print(colored(message, "yellow"), file=sys.stderr)


def _to_port(text: str) -> int | None:
    if not _PORT_RE.fullmatch(text):
        return None
    port = int(text)
    return port if port <= MAX_PORT else None


def _port_count(text: str) -> int:
    value = _to_port(text.strip())
    if value is None:
        raise argparse.ArgumentTypeError(
            f"invalid value '{text}': expected a number between 0 and {MAX_PORT}"
        )
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the portpick command."""
    parser = argparse.ArgumentParser(
        prog="portpick",
        description="Suggest free TCP ports that are neither well-known services nor in use.",
    )
    parser.add_argument(
        "-a",
        "--address",
        help="Target address for RustScan to scan (e.g. 127.0.0.1, localhost, example.com)",
    )
    parser.add_argument(
        "-s",
        "--source",
        default="system",
        help="Source for the list of known service ports [possible values: system, nmap, cache]",
    )
    parser.add_argument(
        "-n",
        "--number-of-ports",
        type=_port_count,
        default=1,
        help="Number of ports to find",
    )
    parser.add_argument(
        "-c",
        "--continuous",
        action="store_true",
        help="Require the found ports to be a continuous block",
    )
    parser.add_argument(
        "-d",
        "--docker-format",
        action="store_true",
        help="Output ports in Docker-compose format (e.g. 8080:)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Force port suggestion even if local port checking fails. "
        "This may result in less accurate suggestions.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def read_system_services_ports(verbose: bool = False) -> set[int]:
    """Read the TCP ports listed in the system services file."""
    if verbose:
        _info(f"Reading port data from system services file: {SYSTEM_SERVICES_PATH}")
    try:
        with open(SYSTEM_SERVICES_PATH, encoding="utf-8") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise PortpickError(
            f"Failed to read system services file at '{SYSTEM_SERVICES_PATH}': {exc}"
        ) from exc
    return parse_services_content(content, "system services file", verbose)


def save_nmap_cache(content: str, verbose: bool = False) -> None:
    """Write fetched Nmap services data to the local cache file."""
    if verbose:
        _info(f"Caching Nmap services data to: {LOCAL_NMAP_CACHE_PATH}")
    try:
        with open(LOCAL_NMAP_CACHE_PATH, "w", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        raise PortpickError(
            f"Failed to write Nmap services cache to '{LOCAL_NMAP_CACHE_PATH}': {exc}"
        ) from exc


def fetch_remote_nmap_services(verbose: bool = False) -> str:
    """Download the Nmap services list and return its text."""
    if verbose:
        _info(f"Fetching Nmap services data from: {REMOTE_NMAP_SERVICES_URL}")
    try:
        response = requests.get(
            REMOTE_NMAP_SERVICES_URL,
            headers={"User-Agent": USER_AGENT},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise PortpickError(f"Failed to send request to nmap-services URL: {exc}") from exc
    if not 200 <= response.status_code < 300:
        raise PortpickError(
            "Failed to download nmap-services file. "
            f"Status: {response.status_code} {response.reason or ''}".rstrip()
        )
    try:
        return response.text
    except (requests.RequestException, UnicodeDecodeError) as exc:
        raise PortpickError(
            f"Failed to read response text from nmap-services URL: {exc}"
        ) from exc


def parse_scan_output(output: str, verbose: bool = False) -> set[int]:
    """Extract open ports from scanner output.

    Lines holding a bare port number and lines of the form
    ``Open <host>:<port>`` are recognised; anything else is skipped.
    """
    ports: set[int] = set()
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        port = _to_port(stripped)
        if port is not None:
            ports.add(port)
            continue

        if stripped.startswith("Open "):
            fields = stripped.split()
            if len(fields) > 1:
                port = _to_port(fields[1].split(":")[-1])
                if port is not None:
                    ports.add(port)
                    if verbose:
                        print(
                            colored(
                                f"Parsed port {port} from rustscan line: '{stripped}'",
                                attrs=["dark"],
                            )
                        )
                    continue

        if verbose and not any(pattern in stripped for pattern in KNOWN_INFO_PATTERNS):
            _warn(
                f"Warning: Could not parse rustscan output line as a direct port: '{stripped}'"
            )
    return ports


def get_locally_used_ports(address: str | None = None, verbose: bool = False) -> set[int]:
    """Scan ``address`` (default 127.0.0.1) with RustScan and return its open ports."""
    if verbose:
        _info("Scanning for locally used TCP ports using RustScan...")
    target = address or "127.0.0.1"
    scan_args = [
        "-a", target,
        "--range", "1-65535",
        "--accessible",
        "-b", "1000",
        "-t", "1500",
        "--",
        "/bin/true",
    ]
    if verbose:
        print(colored(f"Executing: rustscan {' '.join(scan_args)}", attrs=["dark"]))

    try:
        result = subprocess.run(["rustscan", *scan_args], capture_output=True, check=False)
    except OSError as exc:
        raise PortpickError(
            "Failed to execute rustscan command. "
            f"Make sure rustscan is installed and in PATH: {exc}"
        ) from exc

    stdout = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise PortpickError(
            f"rustscan command failed with status: {result.returncode}.\n"
            f"Stdout: {stdout}\nStderr: {stderr}"
        )

    ports = parse_scan_output(stdout, verbose)
    if verbose:
        _info(f"RustScan found {len(ports)} locally open TCP ports.")
    return ports


def _system_ports_or_warn(verbose: bool) -> set[int]:
    if verbose:
        _info(f"Source 'system': Attempting to use system services file: {SYSTEM_SERVICES_PATH}")
    try:
        return read_system_services_ports(verbose)
    except PortpickError as exc:
        _warn(
            f"Warning: Could not read or parse system services file ({SYSTEM_SERVICES_PATH}): "
            f"{exc}. Proceeding with minimal forbidden ports."
        )
        return set()


def _nmap_ports(verbose: bool) -> set[int]:
    if verbose:
        _info(
            "Source 'nmap': Attempting to fetch, cache, and parse Nmap services list "
            f"from {REMOTE_NMAP_SERVICES_URL}..."
        )
    try:
        content = fetch_remote_nmap_services(verbose)
    except PortpickError as exc:
        raise PortpickError(
            f"Failed to fetch remote Nmap services for source 'nmap'.: {exc}"
        ) from exc
    try:
        save_nmap_cache(content, verbose)
    except PortpickError as exc:
        _warn(
            f"Warning: Failed to save fetched Nmap services to cache at "
            f"{LOCAL_NMAP_CACHE_PATH}: {exc}"
        )
    else:
        if verbose:
            print(colored(f"Successfully cached Nmap services to {LOCAL_NMAP_CACHE_PATH}", "green"))
    return parse_services_content(content, "fetched Nmap services list", verbose)


def _cached_ports(verbose: bool) -> set[int]:
    if verbose:
        _info(
            "Source 'cache': Attempting to use cached Nmap services from "
            f"{LOCAL_NMAP_CACHE_PATH}..."
        )
    try:
        with open(LOCAL_NMAP_CACHE_PATH, encoding="utf-8") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError):
        _warn(
            f"Warning: Nmap services cache file not found or unreadable at "
            f"{LOCAL_NMAP_CACHE_PATH}. Falling back to system services."
        )
        return _system_ports_or_warn(verbose)
    return parse_services_content(content, "cached Nmap services list", verbose)


def _service_ports(source: str, verbose: bool) -> set[int]:
    kind = source.lower()
    if kind == "nmap":
        return _nmap_ports(verbose)
    if kind == "cache":
        return _cached_ports(verbose)
    if kind != "system" and verbose:
        _warn(f"Warning: Unknown source '{source}'. Defaulting to 'system' services.")
    return _system_ports_or_warn(verbose)


def _print_ports(ports: Sequence[int], docker_format: bool, color: str) -> None:
    for port in ports:
        text = colored(str(port), color)
        print(f"{text}:" if docker_format else f"- {text}")


def _run(args: argparse.Namespace) -> None:
    count = args.number_of_ports
    if count == 0:
        print(colored("\nNumber of ports requested is 0. No ports to find.", "yellow"))
        return

    forbidden = _service_ports(args.source, args.verbose)

    try:
        forbidden |= get_locally_used_ports(args.address, args.verbose)
    except PortpickError as exc:
        if not args.force:
            raise PortpickError(
                "Failed to get locally used ports. Cannot reliably find an available port. "
                f"Use --force to attempt suggestion anyway.: {exc}"
            ) from exc
        _warn(
            f"Warning: Failed to get locally used ports: {exc}. "
            "Proceeding with --force, but suggestions may be inaccurate."
        )

    if args.verbose:
        _info(f"Total {len(forbidden)} forbidden ports collected.")

    if args.continuous and count > 1 and TOTAL_SEARCHABLE_PORTS < count:
        print(
            colored(
                f"\nWarning: Requested number of continuous ports ({count}) is very large and "
                "might not be possible to find as it exceeds the total number of searchable "
                f"ports ({TOTAL_SEARCHABLE_PORTS}).",
                "yellow",
            )
        )

    available = find_available_ports(forbidden, count, args.continuous)
    color = random.choice(PORT_COLORS)

    if not available:
        kind = "continuous " if args.continuous else ""
        print(
            colored(
                f"\nCould not find {count} {kind}available port(s) in the checked ranges.",
                "red",
            )
        )
        return

    if len(available) < count:
        if args.continuous:
            header = (
                f"\nCould not find a continuous block of {count} ports. "
                f"Found {len(available)} available port(s) instead:"
            )
        else:
            header = f"\nFound {len(available)} out of {count} requested available port(s):"
        print(colored(header, "yellow"))
    else:
        print(colored("\nSuggested available port(s):", "green"))
    _print_ports(available, args.docker_format, color)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command and return its exit status."""
    args = build_parser().parse_args(argv)
    try:
        _run(args)
    except PortpickError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())