import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..core.errors import NetworkNotFoundError, RegistryError
from ..core.events import EventEmitter
from ..registry.base import DeviceRegistry, DeviceState, KnownIdentity, NewDevice, RegisteredDevice
from ..scanner.host_prober import mac_key
from ..scanner.network_scanner import DiscoveredDevice
from ..scanner.subnet import ip_sort_key

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationOutcome:
    """Number of registry writes that succeeded, per action."""
    updated_count: int = 0
    added_count: int = 0
    deactivated_count: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class ReconciliationEngine(EventEmitter):
    """
    Diff a scan result against the devices registered for a network.

    Per MAC address:
        registered and discovered   -> update ip, online, last seen
        discovered only             -> insert as online
        registered and online only  -> offline, ip cleared
    Registry writes are sequential and isolated; a failed write is logged
    and left out of the counts.
    """

    def __init__(self, registry: DeviceRegistry):
        super().__init__()
        self.registry = registry

    async def sync_devices(self, network_name: str, discovered: Iterable[DiscoveredDevice]) -> ReconciliationOutcome:
        """Reconcile a scan result into the named network."""
        network_id = await self.registry.find_network_id_by_name(network_name)
        if network_id is None:
            raise NetworkNotFoundError(network_name)
        return await self.reconcile(network_id, discovered)

    async def reconcile(
        self,
        network_id: int,
        discovered: Iterable[DiscoveredDevice],
        now: Optional[datetime] = None
    ) -> ReconciliationOutcome:
        now = now or datetime.now(timezone.utc)

        discovered_by_mac: dict[str, str] = {}
        for device in sorted(discovered, key=lambda d: ip_sort_key(d.ip_address)):
            discovered_by_mac[mac_key(device.mac_address)] = device.ip_address

        existing_by_mac: dict[str, RegisteredDevice] = {}
        for device in await self.registry.list_devices(network_id):
            existing_by_mac.setdefault(mac_key(device.mac_address), device)

        logger.info("🔄 Processing device states: %d discovered, %d registered",
                    len(discovered_by_mac), len(existing_by_mac))

        outcome = ReconciliationOutcome()

        for mac, ip in discovered_by_mac.items():
            device = existing_by_mac.get(mac)
            if device is None:
                continue
            fields = {"ip_address": ip, "state": DeviceState.ONLINE, "last_seen_at": now}
            if await self._write_update(device, fields):
                outcome.updated_count += 1
                logger.debug("📱 %s (%s) - updated to online", mac, ip)
                await self._notify_callbacks("device_updated", {
                    "device_id": device.id,
                    "mac_address": mac,
                    "ip_address": ip,
                    "old_ip": device.ip_address,
                    "was_online": device.state == DeviceState.ONLINE
                })

        for mac, ip in discovered_by_mac.items():
            if mac in existing_by_mac:
                continue
            if await self._add_device(network_id, mac, ip, now):
                outcome.added_count += 1

        for mac, device in existing_by_mac.items():
            if mac in discovered_by_mac or device.state != DeviceState.ONLINE:
                continue
            fields = {"ip_address": None, "state": DeviceState.OFFLINE}
            if await self._write_update(device, fields):
                outcome.deactivated_count += 1
                logger.debug("📱 %s - set to offline", mac)
                await self._notify_callbacks("device_offline", {
                    "device_id": device.id,
                    "mac_address": mac,
                    "display_name": device.display_name
                })

        logger.info("✅ Device state management completed: %d updated, %d added, %d set offline",
                    outcome.updated_count, outcome.added_count, outcome.deactivated_count)
        await self._notify_callbacks("sync_completed", {"network_id": network_id, **outcome.as_dict()})

        return outcome

    async def _write_update(self, device: RegisteredDevice, fields: dict[str, Any]) -> bool:
        try:
            await self.registry.update_device(device.id, fields)
        except RegistryError as e:
            logger.error("❌ Failed to update device %s: %s", device.mac_address, e)
            await self._notify_callbacks("device_sync_failed", {
                "device_id": device.id,
                "mac_address": device.mac_address,
                "action": "offline" if fields.get("state") == DeviceState.OFFLINE else "update",
                "error": str(e)
            })
            return False
        return True

    async def _find_identity(self, mac: str) -> Optional[KnownIdentity]:
        try:
            return await self.registry.find_device_by_mac_across_networks(mac)
        except RegistryError as e:
            logger.warning("Name lookup failed for %s, adding without a name: %s", mac, e)
            return None

    async def _add_device(self, network_id: int, mac: str, ip: str, now: datetime) -> bool:
        identity = await self._find_identity(mac)
        if identity:
            logger.info("🔍 Found existing device: %s -> %r (%s)",
                        mac, identity.display_name, identity.brand or "Unknown brand")

        new_device = NewDevice(
            network_id=network_id,
            mac_address=mac,
            ip_address=ip,
            state=DeviceState.ONLINE,
            last_seen_at=now,
            display_name=identity.display_name if identity else None,
            brand=identity.brand if identity else None,
        )
        try:
            created = await self.registry.insert_device(new_device)
        except RegistryError as e:
            logger.error("❌ Failed to insert device %s: %s", mac, e)
            await self._notify_callbacks("device_sync_failed", {
                "device_id": None,
                "mac_address": mac,
                "action": "insert",
                "error": str(e)
            })
            return False

        logger.debug("📱 %s (%s) - added as online", mac, ip)
        await self._notify_callbacks("device_added", {
            "device_id": created.id,
            "mac_address": mac,
            "ip_address": ip,
            "display_name": created.display_name,
            "brand": created.brand
        })
        return True
