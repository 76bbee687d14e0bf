"""Network counters from /proc/net.

Format of /proc/net/dev (two header lines, then one line per interface):
    Inter-|   Receive                                                |  Transmit
     face |bytes    packets errs drop fifo frame compressed multicast|bytes ...
        lo: 1048576    1024    0    0    0     0          0         0  1048576 ...

Socket tables (/proc/net/tcp, tcp6, udp, udp6) carry the state in the fourth
column as a hex code, e.g. ``01`` for ESTABLISHED and ``0A`` for LISTEN.
"""

from __future__ import annotations

import logging
from pathlib import Path

from system_metrics.core.constants import DEFAULT_PROC_ROOT
from system_metrics.core.errors import ParseError
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    NetworkConnectionStats,
    NetworkInterface,
    NetworkInterfaceType,
    NetworkSnapshot,
)
from system_metrics.monitoring.base import FileReader, NetworkMetricsSource

logger = logging.getLogger(__name__)

# Receive: bytes packets errs drop fifo frame compressed multicast
# Transmit: bytes packets errs drop fifo colls carrier compressed
NET_DEV_FIELDS = 16

TCP_ESTABLISHED = 0x01
TCP_TIME_WAIT = 0x06
# Unconnected UDP sockets report TCP_CLOSE.
UDP_UNCONNECTED = 0x07
TCP_LISTEN = 0x0A


class LinuxProcNetDevParser:
    """Parses /proc/net/dev into NetworkInterface entries, in file order."""

    def __init__(self, source_name: str = "/proc/net/dev") -> None:
        self._source_name = source_name

    def parse(self, content: str) -> Result[list[NetworkInterface]]:
        if not content.strip():
            return Result.failure(ParseError.for_file(self._source_name, "Empty content"))

        interfaces: list[NetworkInterface] = []
        for line in content.splitlines():
            name, sep, counters = line.partition(":")
            if not sep or "|" in line:
                continue
            fields = counters.split()
            if len(fields) < NET_DEV_FIELDS:
                logger.debug(f"Skipping short /proc/net/dev line: {line!r}")
                continue
            try:
                values = [int(v) for v in fields[:NET_DEV_FIELDS]]
            except ValueError:
                logger.debug(f"Skipping non-numeric /proc/net/dev line: {line!r}")
                continue

            name = name.strip()
            interfaces.append(
                NetworkInterface(
                    name=name,
                    interface_type=NetworkInterfaceType.from_name(name),
                    bytes_received=values[0],
                    packets_received=values[1],
                    receive_errors=values[2],
                    receive_drops=values[3],
                    bytes_sent=values[8],
                    packets_sent=values[9],
                    transmit_errors=values[10],
                    transmit_drops=values[11],
                )
            )
        return Result.success(interfaces)


class LinuxProcNetTcpParser:
    """Counts sockets by state across /proc/net/{tcp,udp} style tables."""

    @staticmethod
    def _states(content: str) -> list[int]:
        states: list[int] = []
        for line in content.splitlines()[1:]:
            fields = line.split()
            if len(fields) < 4:
                continue
            try:
                states.append(int(fields[3], 16))
            except ValueError:
                continue
        return states

    def parse(self, tcp_tables: list[str], udp_tables: list[str]) -> NetworkConnectionStats:
        tcp = [state for table in tcp_tables for state in self._states(table)]
        udp = [state for table in udp_tables for state in self._states(table)]
        return NetworkConnectionStats(
            tcp_established=tcp.count(TCP_ESTABLISHED),
            tcp_listening=tcp.count(TCP_LISTEN),
            tcp_time_wait=tcp.count(TCP_TIME_WAIT),
            udp_listening=udp.count(UDP_UNCONNECTED),
            total_connections=len(tcp) + len(udp),
        )


class LinuxProcNetworkMetricsSource(NetworkMetricsSource):
    """Reads interface counters from <proc-root>/net/dev and socket counts.

    /proc/net/dev is required. The socket tables are best effort: when neither
    a TCP nor a UDP table is readable, ``connections`` is None.
    """

    def __init__(
        self,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
        net_dev_parser: LinuxProcNetDevParser | None = None,
        connection_parser: LinuxProcNetTcpParser | None = None,
    ) -> None:
        self._net_dir = Path(proc_root) / "net"
        self._file_reader = file_reader or FileReader()
        self._net_dev_parser = net_dev_parser or LinuxProcNetDevParser(str(self._net_dir / "dev"))
        self._connection_parser = connection_parser or LinuxProcNetTcpParser()

    def read(self) -> Result[NetworkSnapshot]:
        content = self._file_reader.read(self._net_dir / "dev")
        if content.is_failure():
            return Result.failure(content.error)  # type: ignore[arg-type]

        interfaces = self._net_dev_parser.parse(content.value)
        if interfaces.is_failure():
            return Result.failure(interfaces.error)  # type: ignore[arg-type]

        return Result.success(
            NetworkSnapshot(
                interfaces=tuple(interfaces.value),
                connections=self._read_connections(),
            )
        )

    def _read_tables(self, *names: str) -> list[str]:
        tables: list[str] = []
        for name in names:
            result = self._file_reader.read(self._net_dir / name)
            if result.is_success():
                tables.append(result.value)
            else:
                logger.debug(f"Socket table unavailable: {result.error}")
        return tables

    def _read_connections(self) -> NetworkConnectionStats | None:
        tcp_tables = self._read_tables("tcp", "tcp6")
        udp_tables = self._read_tables("udp", "udp6")
        if not tcp_tables and not udp_tables:
            return None
        return self._connection_parser.parse(tcp_tables, udp_tables)
