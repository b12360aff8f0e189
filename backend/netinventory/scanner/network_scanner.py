import asyncio
import logging
from dataclasses import dataclass, asdict
from itertools import islice
from typing import Iterable, Optional

from ..core.config import settings
from ..core.events import EventEmitter
from .host_prober import HostProber
from .interfaces import get_local_network_info
from .subnet import DEFAULT_TARGET_MASK, NetworkInterfaceInfo, compute_range, ip_sort_key, scan_addresses

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredDevice:
    """A host that answered a ping and has a resolvable MAC."""
    ip_address: str
    mac_address: str


def _batches(addresses: Iterable[str], size: int):
    iterator = iter(addresses)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


class NetworkScanner(EventEmitter):
    """Ping sweep over a subnet, in bounded batches."""

    def __init__(self, prober: Optional[HostProber] = None, batch_size: Optional[int] = None):
        super().__init__()
        self.prober = prober or HostProber(
            ping_timeout=settings.PING_TIMEOUT,
            call_timeout=settings.PING_CALL_TIMEOUT
        )
        self.batch_size = settings.SCAN_BATCH_SIZE if batch_size is None else batch_size
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    async def discover(self, addresses: Iterable[str]) -> set[DiscoveredDevice]:
        """
        Probe every address once, batch_size at a time.

        Each batch runs concurrently and must finish before the next one
        starts. Hosts that are unreachable or have no MAC are left out.
        """
        devices: set[DiscoveredDevice] = set()

        for index, batch in enumerate(_batches(addresses, self.batch_size)):
            macs = await asyncio.gather(*(self.prober.probe(ip) for ip in batch))

            found = [
                DiscoveredDevice(ip_address=ip, mac_address=mac)
                for ip, mac in zip(batch, macs)
                if mac
            ]
            for device in found:
                devices.add(device)
                await self._notify_callbacks("device_discovered", asdict(device))

            logger.debug("Batch %d: %d/%d hosts responded", index + 1, len(found), len(batch))
            await self._notify_callbacks("batch_completed", {
                "batch": index + 1,
                "probed": len(batch),
                "found": len(found)
            })

        return devices

    async def run_scan(self, target_ip: Optional[str] = None, target_mask: Optional[str] = None) -> list[DiscoveredDevice]:
        """
        Scan the local subnet, or an explicit target network.

        Args:
            target_ip: Any address of the network to scan instead of the local one
            target_mask: Netmask for target_ip (255.255.255.0 if omitted)

        Returns:
            Discovered devices sorted by IP address
        """
        if target_ip:
            info = NetworkInterfaceInfo.build("target", target_ip, target_mask or DEFAULT_TARGET_MASK)
            logger.info("🎯 Using target network: %s", info.cidr_notation)
        else:
            info = get_local_network_info()
            logger.info("📡 Interface %s, local IP %s, netmask %s (%s)",
                        info.interface_name, info.local_ip, info.netmask, info.cidr_notation)

        address_range = compute_range(info.local_ip, info.netmask)
        logger.info("🌐 Network range: %s - %s, scanning %d possible hosts",
                    address_range.first_address, address_range.last_address,
                    address_range.usable_host_count)

        await self._notify_callbacks("scan_started", {
            "interface": info.interface_name,
            "cidr": info.cidr_notation,
            "first_address": address_range.first_address,
            "last_address": address_range.last_address,
            "usable_host_count": address_range.usable_host_count
        })

        discovered = await self.discover(scan_addresses(address_range))
        devices = sorted(discovered, key=lambda d: ip_sort_key(d.ip_address))

        logger.info("✅ Scan complete: %d device(s) found", len(devices))
        await self._notify_callbacks("scan_completed", {
            "cidr": info.cidr_notation,
            "devices_found": len(devices)
        })

        return devices
