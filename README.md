# portpick

`portpick` suggests TCP ports that are free to use for a new service. It
skips ports that are listed for known services and ports that are already
open on the target host.

The registered range (1024–49151) is searched first, then the dynamic
range (49152–65535).

## Installation

```
pip install .
```

To find ports that are in use, `portpick` runs the `rustscan` port scanner
(`rustscan -a <address> --range 1-65535 --accessible -b 1000 -t 1500 -- /bin/true`).
It must be installed and on your `PATH`. If the scan cannot be run or exits
with an error, `portpick` stops with an error unless `--force` is given; with
`--force` it warns and picks ports from the service list alone.

## Usage

```
portpick [OPTIONS]
```

The same command can be run as `python -m portpick.cli`.

| Option | Meaning |
| --- | --- |
| `-a`, `--address ADDRESS` | Host to scan for open ports (default `127.0.0.1`) |
| `-s`, `--source SOURCE` | Where the list of known service ports comes from: `system`, `nmap` or `cache` (default `system`) |
| `-n`, `--number-of-ports N` | How many ports to suggest, 0 to 65535 (default 1) |
| `-c`, `--continuous` | Require the ports to form one unbroken block |
| `-d`, `--docker-format` | Print ports as `8080:` for docker-compose files instead of `- 8080` |
| `-v`, `--verbose` | Show what is happening |
| `-f`, `--force` | Carry on even if the local port scan fails |
| `-V`, `--version` | Print the version and exit |
| `-h`, `--help` | Print help and exit |

Sources of service ports:

- `system` reads `/etc/services`. If it cannot be read, a warning is printed
  and only scanned ports are avoided.
- `nmap` downloads the Nmap services list and saves a copy to
  `src/nmap-services.cache`, relative to the current directory. A failed
  download is an error; a failed save is only a warning.
- `cache` reads that saved copy. If it is missing or unreadable, it falls
  back to `system` with a warning.

Any other source value is treated as `system` (with a warning under
`--verbose`).

Only TCP entries are used from a service list; comment lines, blank lines and
entries for the service named `unknown` are ignored.

If fewer ports are found than asked for, a notice is printed with the ports
that were found. The command exits with status 1 on errors and 0 otherwise.

### Examples

Suggest three free ports:

```
portpick -n 3
```

Suggest two neighbouring ports in docker-compose form, without requiring the
scan to succeed:

```
portpick -n 2 -c -d --force
```

## Library use

`portpick.core` holds the parsing and search logic:

```python
from portpick.core import find_available_ports, parse_services_content

known = parse_services_content("http 80/tcp\nssh 22/tcp\n", "inline list", False)
print(find_available_ports(known | {1024}, 2, True))  # [1025, 1026]
```

- `parse_services_content(content, source_description, verbose)` returns the
  set of TCP ports named in a services-style listing.
- `find_available_ports(forbidden_ports, num_ports, continuous)` returns the
  first free ports in range order. With `continuous` it returns the first
  unbroken block lying wholly inside one range, or an empty list. It raises
  `ValueError` if `num_ports` is outside 0–65535.

`portpick.cli` also offers `read_system_services_ports`,
`fetch_remote_nmap_services`, `save_nmap_cache`, `get_locally_used_ports`
and `parse_scan_output` (which reads bare port numbers and
`Open <host>:<port>` lines). They raise `PortpickError` when data cannot be
gathered.

## Running the tests

```
pip install ".[test]"
pytest
```