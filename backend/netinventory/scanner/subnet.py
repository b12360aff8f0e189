"""
IPv4 subnet arithmetic: scan range from an interface address and netmask.

All helpers work on dotted-quad strings octet by octet, the same way the
range is derived from interface data (ip AND mask for the network address,
ip OR inverted mask for the broadcast address).
"""

from dataclasses import dataclass
from itertools import product
from typing import Iterator

from ..core.errors import InvalidAddressError

DEFAULT_TARGET_MASK = "255.255.255.0"


@dataclass(frozen=True)
class AddressRange:
    """Network and broadcast address of a subnet."""
    first_address: str
    last_address: str
    usable_host_count: int


@dataclass(frozen=True)
class NetworkInterfaceInfo:
    """Interface data captured once at the start of a scan."""
    interface_name: str
    local_ip: str
    netmask: str
    cidr_notation: str

    @classmethod
    def build(cls, interface_name: str, local_ip: str, netmask: str) -> "NetworkInterfaceInfo":
        cidr = f"{local_ip}/{cidr_prefix_length(netmask)}"
        return cls(interface_name, local_ip, netmask, cidr)


def parse_ipv4(value: str) -> tuple[int, int, int, int]:
    """Split a dotted IPv4 string into four validated octets."""
    if not isinstance(value, str):
        raise InvalidAddressError(f"Invalid IPv4 address: {value!r}")

    parts = value.strip().split('.')
    if len(parts) != 4:
        raise InvalidAddressError(f"Invalid IPv4 address: {value!r}")

    octets = []
    for part in parts:
        if not part.isdigit() or len(part) > 3:
            raise InvalidAddressError(f"Invalid IPv4 address: {value!r}")
        octet = int(part)
        if octet > 255:
            raise InvalidAddressError(f"Invalid IPv4 address: {value!r}")
        octets.append(octet)

    return tuple(octets)


def format_ipv4(octets) -> str:
    return '.'.join(str(x) for x in octets)


def ip_sort_key(ip: str) -> tuple[int, int, int, int]:
    """Numeric sort key for dotted IPv4 strings."""
    return parse_ipv4(ip)


def cidr_prefix_length(netmask: str) -> int:
    """Count network bits in a dotted netmask (255.255.255.0 -> 24)."""
    mask_parts = parse_ipv4(netmask)
    return sum(bin(x).count('1') for x in mask_parts)


def compute_range(local_ip: str, netmask: str) -> AddressRange:
    """
    Derive the network/broadcast addresses and usable host count.

    Args:
        local_ip: Any address inside the subnet (e.g. "192.168.1.50")
        netmask: Dotted netmask (e.g. "255.255.255.0")

    Returns:
        AddressRange; usable_host_count is 0 for /31 and /32 masks
    """
    ip_parts = parse_ipv4(local_ip)
    mask_parts = parse_ipv4(netmask)

    network_parts = [ip_parts[i] & mask_parts[i] for i in range(4)]
    broadcast_parts = [ip_parts[i] | (~mask_parts[i] & 0xFF) for i in range(4)]

    total = 1
    for part in mask_parts:
        total *= 256 - part
    usable = max(total - 2, 0)  # -2 for network and broadcast

    return AddressRange(
        first_address=format_ipv4(network_parts),
        last_address=format_ipv4(broadcast_parts),
        usable_host_count=usable,
    )


def _octet_ranges(first: str, last: str):
    start_parts = parse_ipv4(first)
    end_parts = parse_ipv4(last)
    return [range(start_parts[i], end_parts[i] + 1) for i in range(4)]


def enumerate_addresses(first: str, last: str) -> Iterator[str]:
    """
    Yield candidate host addresses between two endpoints, ascending.

    Octets are walked in nested order (a outer, d inner); the endpoints
    themselves (network and broadcast) are skipped.
    """
    for octets in product(*_octet_ranges(first, last)):
        ip = format_ipv4(octets)
        if ip != first and ip != last:
            yield ip


def scan_addresses(address_range: AddressRange) -> Iterator[str]:
    """Addresses worth probing for a range.

    A /31 or /32 has no usable hosts in the classic sense, so every address
    of the range is probed instead of none.
    """
    if address_range.usable_host_count > 0:
        return enumerate_addresses(address_range.first_address, address_range.last_address)
    return (
        format_ipv4(octets)
        for octets in product(*_octet_ranges(address_range.first_address, address_range.last_address))
    )
