import logging
import socket
from dataclasses import dataclass
from typing import Optional

import psutil

from ..core.errors import NoLocalNetworkError
from .subnet import NetworkInterfaceInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalInterface:
    """One IPv4 address bound to a local interface."""
    name: str
    ipv4: str
    netmask: str
    internal: bool


def list_local_interfaces() -> list[LocalInterface]:
    """List IPv4 addresses of every local interface that is up."""
    interfaces = []
    stats = psutil.net_if_stats()
    
    for name, addrs in psutil.net_if_addrs().items():
        if name in stats and not stats[name].isup:
            continue
        for addr in addrs:
            if addr.family != socket.AF_INET or not addr.netmask:
                continue
            interfaces.append(LocalInterface(
                name=name,
                ipv4=addr.address,
                netmask=addr.netmask,
                internal=addr.address.startswith("127."),
            ))
    
    return interfaces


def get_local_network_info(interfaces: Optional[list[LocalInterface]] = None) -> NetworkInterfaceInfo:
    """Pick the first non-internal IPv4 interface."""
    if interfaces is None:
        interfaces = list_local_interfaces()
    
    for iface in interfaces:
        if iface.internal:
            continue
        info = NetworkInterfaceInfo.build(iface.name, iface.ipv4, iface.netmask)
        logger.debug("Selected interface %s (%s)", info.interface_name, info.cidr_notation)
        return info
    
    raise NoLocalNetworkError("Could not determine local network information")
