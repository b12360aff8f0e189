"""
Registry contract consumed by the sync engine.

The registry owns networks and devices; the engine only reads them and
issues per-record inserts and updates through this interface.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


class DeviceState(str, enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class RegisteredDevice:
    """A device row as stored in the registry."""
    id: int
    network_id: int
    mac_address: str
    ip_address: Optional[str] = None
    display_name: Optional[str] = None
    brand: Optional[str] = None
    state: DeviceState = DeviceState.OFFLINE
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class NewDevice:
    """Fields for a device seen for the first time on a network."""
    network_id: int
    mac_address: str
    ip_address: Optional[str]
    state: DeviceState = DeviceState.ONLINE
    last_seen_at: Optional[datetime] = None
    display_name: Optional[str] = None
    brand: Optional[str] = None


@dataclass(frozen=True)
class KnownIdentity:
    """Name and brand already given to a MAC on some network."""
    display_name: str
    brand: Optional[str] = None


class DeviceRegistry(ABC):
    """Query/update contract of the device registry.

    Implementations raise RegistryError for backend failures. Writes are
    independent: one failing record never rolls back another.
    """

    @abstractmethod
    async def find_network_id_by_name(self, name: str) -> Optional[int]:
        """Return the id of the named network, or None."""

    @abstractmethod
    async def list_devices(self, network_id: int) -> list[RegisteredDevice]:
        """Return every device registered on a network."""

    @abstractmethod
    async def find_device_by_mac_across_networks(self, mac_address: str) -> Optional[KnownIdentity]:
        """Return the name/brand of any named device with this MAC, on any network."""

    @abstractmethod
    async def insert_device(self, device: NewDevice) -> RegisteredDevice:
        ...

    @abstractmethod
    async def update_device(self, device_id: int, fields: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete_device(self, device_id: int) -> None:
        ...
