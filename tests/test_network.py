"""Tests for /proc/net parsing and the network source."""

from pathlib import Path

import pytest

from system_metrics.core.errors import MetricsFileNotFoundError, ParseError
from system_metrics.core.schemas import NetworkInterfaceType
from system_metrics.monitoring.network import (
    LinuxProcNetDevParser,
    LinuxProcNetTcpParser,
    LinuxProcNetworkMetricsSource,
)

NET_DEV = (
    "Inter-|   Receive                                                |  Transmit\n"
    " face |bytes    packets errs drop fifo frame compressed multicast"
    "|bytes    packets errs drop fifo colls carrier compressed\n"
    "    lo: 1048576    1024    0    0    0     0          0         0"
    "  1048576    1024    0    0    0     0       0          0\n"
    "  eth0: 10485760   10240   10    5    0     0          0         0"
    "  5242880    5120    5    2    0     0       0          0\n"
    " wlan0: 20971520   20480   20   10    0     0          0         0"
    " 10485760   10240   10    5    0     0       0          0\n"
)

TCP_HEADER = (
    "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt"
    "   uid  timeout inode\n"
)
PROC_NET_TCP = TCP_HEADER + (
    "   0: 00000000:0016 00000000:0000 0A 00000000:00000000 00:00000000 00000000"
    "     0        0 1234 1 0000000000000000 100 0 0 10 0\n"
    "   1: 0100007F:0CEA 0100007F:A1B2 01 00000000:00000000 00:00000000 00000000"
    "  1000        0 2345 1 0000000000000000 20 4 30 10 -1\n"
    "   2: 0100007F:0CEA 0100007F:A1B4 06 00000000:00000000 03:00000F6A 00000000"
    "     0        0 0 3 0000000000000000\n"
)
PROC_NET_UDP = TCP_HEADER + (
    "  123: 00000000:0044 00000000:0000 07 00000000:00000000 00:00000000 00000000"
    "     0        0 3456 2 0000000000000000 0\n"
)


class TestLinuxProcNetDevParser:
    """Tests for LinuxProcNetDevParser."""

    def test_parse(self) -> None:
        interfaces = LinuxProcNetDevParser().parse(NET_DEV).value

        assert [i.name for i in interfaces] == ["lo", "eth0", "wlan0"]
        eth0 = interfaces[1]
        assert eth0.bytes_received == 10485760
        assert eth0.packets_received == 10240
        assert eth0.receive_errors == 10
        assert eth0.receive_drops == 5
        assert eth0.bytes_sent == 5242880
        assert eth0.packets_sent == 5120
        assert eth0.transmit_errors == 5
        assert eth0.transmit_drops == 2

    def test_interface_types(self) -> None:
        interfaces = LinuxProcNetDevParser().parse(NET_DEV).value

        assert interfaces[0].is_loopback()
        assert interfaces[1].interface_type is NetworkInterfaceType.ETHERNET
        assert interfaces[2].interface_type is NetworkInterfaceType.WIFI

    def test_short_and_non_numeric_lines_skipped(self) -> None:
        content = (
            NET_DEV
            + "  bad0: 1 2 3\n"
            + "  bad1: x 0 0 0 0 0 0 0 0 0 0 0 0 0 0 0\n"
        )

        interfaces = LinuxProcNetDevParser().parse(content).value

        assert [i.name for i in interfaces] == ["lo", "eth0", "wlan0"]

    def test_empty_input(self) -> None:
        result = LinuxProcNetDevParser().parse("  \n")

        assert isinstance(result.error, ParseError)


class TestLinuxProcNetTcpParser:
    """Tests for LinuxProcNetTcpParser."""

    def test_counts_by_state(self) -> None:
        stats = LinuxProcNetTcpParser().parse([PROC_NET_TCP], [PROC_NET_UDP])

        assert stats.tcp_listening == 1
        assert stats.tcp_established == 1
        assert stats.tcp_time_wait == 1
        assert stats.udp_listening == 1
        assert stats.total_connections == 4

    def test_header_only_tables(self) -> None:
        stats = LinuxProcNetTcpParser().parse([TCP_HEADER], [])

        assert stats.total_connections == 0


class TestLinuxProcNetworkMetricsSource:
    """Tests for LinuxProcNetworkMetricsSource."""

    @pytest.fixture
    def proc_root(self, tmp_path: Path) -> Path:
        net = tmp_path / "net"
        net.mkdir()
        (net / "dev").write_text(NET_DEV)
        return tmp_path

    def test_read_with_connections(self, proc_root: Path) -> None:
        (proc_root / "net" / "tcp").write_text(PROC_NET_TCP)
        (proc_root / "net" / "tcp6").write_text(PROC_NET_TCP)
        (proc_root / "net" / "udp").write_text(PROC_NET_UDP)

        snapshot = LinuxProcNetworkMetricsSource(proc_root).read().value

        assert snapshot.find_interface("eth0").bytes_sent == 5242880
        assert snapshot.find_interface("eth1") is None
        assert snapshot.connections.tcp_listening == 2
        assert snapshot.connections.total_connections == 7

    def test_connections_absent_without_socket_tables(self, proc_root: Path) -> None:
        result = LinuxProcNetworkMetricsSource(proc_root).read()

        assert result.is_success()
        assert len(result.value.interfaces) == 3
        assert result.value.connections is None

    def test_missing_net_dev(self, tmp_path: Path) -> None:
        result = LinuxProcNetworkMetricsSource(tmp_path).read()

        assert isinstance(result.error, MetricsFileNotFoundError)
