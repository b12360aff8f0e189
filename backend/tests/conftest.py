import asyncio
from dataclasses import replace
from typing import Any, Optional

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from netinventory.core.errors import DeviceNotFoundError, NetworkNotFoundError, RegistryError
from netinventory.db.database import create_session_factory, init_db
from netinventory.scanner.host_prober import mac_key
from netinventory.registry.base import (
    DeviceRegistry,
    DeviceState,
    KnownIdentity,
    NewDevice,
    RegisteredDevice,
)


class InMemoryRegistry(DeviceRegistry):
    """Registry double with per-record failure injection."""

    def __init__(self):
        self.networks: dict[str, int] = {}
        self.devices: dict[int, RegisteredDevice] = {}
        self._next_id = 1
        self.fail_updates_for: set[int] = set()
        self.fail_inserts_for: set[str] = set()
        self.fail_lookups = False
        self.lookup_calls: list[str] = []

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    async def add_network(self, name: str) -> int:
        self.networks[name] = self._new_id()
        return self.networks[name]

    async def list_networks(self) -> list[tuple[int, str]]:
        return sorted(((id_, name) for name, id_ in self.networks.items()), key=lambda n: n[1])

    def _network_name(self, network_id: int) -> str:
        for name, id_ in self.networks.items():
            if id_ == network_id:
                return name
        raise NetworkNotFoundError(str(network_id))

    async def rename_network(self, network_id: int, name: str) -> None:
        del self.networks[self._network_name(network_id)]
        self.networks[name] = network_id

    async def delete_network(self, network_id: int) -> None:
        del self.networks[self._network_name(network_id)]
        for device_id in [d.id for d in self.devices.values() if d.network_id == network_id]:
            del self.devices[device_id]

    def seed(self, network_id: int, mac: str, ip: Optional[str] = None,
             state: DeviceState = DeviceState.ONLINE, display_name: Optional[str] = None,
             brand: Optional[str] = None) -> RegisteredDevice:
        device = RegisteredDevice(
            id=self._new_id(),
            network_id=network_id,
            mac_address=mac,
            ip_address=ip,
            display_name=display_name,
            brand=brand,
            state=state,
        )
        self.devices[device.id] = device
        return device

    def by_mac(self, network_id: int, mac: str) -> Optional[RegisteredDevice]:
        for device in self.devices.values():
            if device.network_id == network_id and device.mac_address == mac:
                return device
        return None

    async def find_network_id_by_name(self, name: str) -> Optional[int]:
        return self.networks.get(name)

    async def list_devices(self, network_id: int) -> list[RegisteredDevice]:
        return [replace(d) for d in self.devices.values() if d.network_id == network_id]

    async def get_device(self, device_id: int) -> RegisteredDevice:
        if device_id not in self.devices:
            raise DeviceNotFoundError(device_id)
        return replace(self.devices[device_id])

    async def find_device_by_mac_across_networks(self, mac_address: str) -> Optional[KnownIdentity]:
        self.lookup_calls.append(mac_address)
        if self.fail_lookups:
            raise RegistryError("lookup unavailable")
        for device in self.devices.values():
            if mac_key(device.mac_address) == mac_key(mac_address) and device.display_name is not None:
                return KnownIdentity(display_name=device.display_name, brand=device.brand)
        return None

    async def insert_device(self, device: NewDevice) -> RegisteredDevice:
        if device.mac_address in self.fail_inserts_for:
            raise RegistryError(f"insert rejected for {device.mac_address}")
        if self.by_mac(device.network_id, device.mac_address):
            raise RegistryError("duplicate (network_id, mac_address)")
        created = RegisteredDevice(id=self._new_id(), **{**vars(device), "mac_address": mac_key(device.mac_address)})
        self.devices[created.id] = created
        return replace(created)

    async def update_device(self, device_id: int, fields: dict[str, Any]) -> None:
        if device_id in self.fail_updates_for:
            raise RegistryError(f"update rejected for {device_id}")
        if device_id not in self.devices:
            raise DeviceNotFoundError(device_id)
        self.devices[device_id] = replace(self.devices[device_id], **fields)

    async def delete_device(self, device_id: int) -> None:
        if self.devices.pop(device_id, None) is None:
            raise DeviceNotFoundError(device_id)


class FakeProber:
    """Answers for a fixed set of IPs and records probe concurrency."""

    def __init__(self, hosts: Optional[dict[str, str]] = None):
        self.hosts = hosts or {}
        self.probed: list[str] = []
        self.active = 0
        self.max_active = 0
        self.events: list[tuple[str, str]] = []

    async def probe(self, ip: str) -> Optional[str]:
        self.probed.append(ip)
        self.events.append(("start", ip))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)
        self.active -= 1
        self.events.append(("end", ip))
        return self.hosts.get(ip)


class EventRecorder:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def __call__(self, event_type: str, data: dict):
        self.events.append((event_type, data))

    def of_type(self, event_type: str) -> list[dict]:
        return [data for kind, data in self.events if kind == event_type]


@pytest.fixture
def registry():
    return InMemoryRegistry()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()
