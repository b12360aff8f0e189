import socket
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from netinventory.core.errors import NoLocalNetworkError
from netinventory.scanner.interfaces import LocalInterface, get_local_network_info, list_local_interfaces


def _addr(family, address, netmask):
    return SimpleNamespace(family=family, address=address, netmask=netmask, broadcast=None, ptp=None)


NET_IF_ADDRS = {
    "lo": [_addr(socket.AF_INET, "127.0.0.1", "255.0.0.0")],
    "eth0": [
        _addr(socket.AF_INET6, "fe80::1", "ffff:ffff:ffff:ffff::"),
        _addr(socket.AF_INET, "192.168.1.50", "255.255.255.0"),
    ],
    "wlan0": [_addr(socket.AF_INET, "10.0.0.5", "255.255.255.0")],
    "tun0": [_addr(socket.AF_INET, "10.8.0.2", None)],
}

NET_IF_STATS = {
    "lo": SimpleNamespace(isup=True),
    "eth0": SimpleNamespace(isup=True),
    "wlan0": SimpleNamespace(isup=False),
    "tun0": SimpleNamespace(isup=True),
}


@pytest.fixture
def fake_psutil():
    with patch("netinventory.scanner.interfaces.psutil") as psutil:
        psutil.net_if_addrs.return_value = NET_IF_ADDRS
        psutil.net_if_stats.return_value = NET_IF_STATS
        yield psutil


def test_lists_ipv4_interfaces_that_are_up(fake_psutil):
    assert list_local_interfaces() == [
        LocalInterface("lo", "127.0.0.1", "255.0.0.0", internal=True),
        LocalInterface("eth0", "192.168.1.50", "255.255.255.0", internal=False),
    ]


def test_selects_first_external_interface(fake_psutil):
    info = get_local_network_info()

    assert info.interface_name == "eth0"
    assert info.local_ip == "192.168.1.50"
    assert info.netmask == "255.255.255.0"
    assert info.cidr_notation == "192.168.1.50/24"


def test_only_loopback():
    interfaces = [LocalInterface("lo", "127.0.0.1", "255.0.0.0", internal=True)]
    with pytest.raises(NoLocalNetworkError):
        get_local_network_info(interfaces)


def test_no_interfaces():
    with pytest.raises(NoLocalNetworkError):
        get_local_network_info([])
