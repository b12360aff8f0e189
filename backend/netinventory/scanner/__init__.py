# Scanner module
from .host_prober import HostProber, normalize_mac
from .network_scanner import NetworkScanner, DiscoveredDevice
from .subnet import AddressRange, NetworkInterfaceInfo, compute_range, cidr_prefix_length, enumerate_addresses

__all__ = [
    "HostProber",
    "normalize_mac",
    "NetworkScanner",
    "DiscoveredDevice",
    "AddressRange",
    "NetworkInterfaceInfo",
    "compute_range",
    "cidr_prefix_length",
    "enumerate_addresses",
]
