from enum import Enum
from typing import Any, Optional

from sqlalchemy import func, select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import DeviceNotFoundError, NetworkNotFoundError, RegistryError
from ..db.database import with_db_retry
from ..db.models import Device, Network
from ..scanner.host_prober import mac_key
from .base import DeviceRegistry, DeviceState, KnownIdentity, NewDevice, RegisteredDevice

UPDATABLE_FIELDS = {"ip_address", "display_name", "brand", "state", "last_seen_at"}


def _to_registered(device: Device) -> RegisteredDevice:
    return RegisteredDevice(
        id=device.id,
        network_id=device.network_id,
        mac_address=device.mac_address,
        ip_address=device.ip_address,
        display_name=device.display_name,
        brand=device.brand,
        state=DeviceState(device.state),
        last_seen_at=device.last_seen_at,
        created_at=device.created_at,
    )


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class SqlDeviceRegistry(DeviceRegistry):
    """Device registry stored in the networks/devices tables.

    Every call runs in its own session and commits on its own, so a failed
    write only loses that record.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def add_network(self, name: str) -> int:
        try:
            async with self.session_factory() as session:
                network = Network(name=name)
                session.add(network)
                await session.commit()
                return network.id
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to create network {name}: {e}") from e

    async def list_networks(self) -> list[tuple[int, str]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Network.id, Network.name).order_by(Network.name))
                return [(row.id, row.name) for row in result]
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to list networks: {e}") from e

    async def rename_network(self, network_id: int, name: str) -> None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    update(Network).where(Network.id == network_id).values(name=name)
                )
                await session.commit()
                renamed = result.rowcount
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to rename network {network_id}: {e}") from e

        if not renamed:
            raise NetworkNotFoundError(str(network_id))

    async def delete_network(self, network_id: int) -> None:
        """Delete a network together with its devices."""
        try:
            async with self.session_factory() as session:
                await session.execute(delete(Device).where(Device.network_id == network_id))
                result = await session.execute(delete(Network).where(Network.id == network_id))
                await session.commit()
                deleted = result.rowcount
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to delete network {network_id}: {e}") from e

        if not deleted:
            raise NetworkNotFoundError(str(network_id))

    async def find_network_id_by_name(self, name: str) -> Optional[int]:
        try:
            async with self.session_factory() as session:
                return await session.scalar(select(Network.id).where(Network.name == name))
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to look up network {name}: {e}") from e

    async def list_devices(self, network_id: int) -> list[RegisteredDevice]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Device).where(Device.network_id == network_id).order_by(Device.id)
                )
                return [_to_registered(d) for d in result.scalars().all()]
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to fetch existing devices: {e}") from e

    async def get_device(self, device_id: int) -> RegisteredDevice:
        try:
            async with self.session_factory() as session:
                device = await session.get(Device, device_id)
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to fetch device {device_id}: {e}") from e

        if device is None:
            raise DeviceNotFoundError(device_id)
        return _to_registered(device)

    async def find_device_by_mac_across_networks(self, mac_address: str) -> Optional[KnownIdentity]:
        # Rows written by other clients may use upper case or dashes
        stored_mac = func.replace(func.lower(Device.mac_address), '-', ':')
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Device.display_name, Device.brand)
                    .where(stored_mac == mac_key(mac_address), Device.display_name.is_not(None))
                    .order_by(Device.id)
                    .limit(1)
                )
                row = result.first()
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to look up MAC {mac_address}: {e}") from e

        if row is None:
            return None
        return KnownIdentity(display_name=row.display_name, brand=row.brand)

    @with_db_retry()
    async def _insert(self, device: NewDevice) -> RegisteredDevice:
        async with self.session_factory() as session:
            row = Device(
                network_id=device.network_id,
                mac_address=mac_key(device.mac_address),
                ip_address=device.ip_address,
                display_name=device.display_name,
                brand=device.brand,
                state=_column_value(device.state),
                last_seen_at=device.last_seen_at,
            )
            session.add(row)
            await session.commit()
            return _to_registered(row)

    async def insert_device(self, device: NewDevice) -> RegisteredDevice:
        try:
            return await self._insert(device)
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to insert device {device.mac_address}: {e}") from e

    @with_db_retry()
    async def _update(self, device_id: int, values: dict[str, Any]) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Device).where(Device.id == device_id).values(**values)
            )
            await session.commit()
            return result.rowcount

    async def update_device(self, device_id: int, fields: dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise RegistryError(f"Cannot update device fields: {', '.join(sorted(unknown))}")

        values = {key: _column_value(value) for key, value in fields.items()}
        try:
            updated = await self._update(device_id, values)
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to update device {device_id}: {e}") from e

        if not updated:
            raise DeviceNotFoundError(device_id)

    async def delete_device(self, device_id: int) -> None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(delete(Device).where(Device.id == device_id))
                await session.commit()
                deleted = result.rowcount
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to delete device {device_id}: {e}") from e

        if not deleted:
            raise DeviceNotFoundError(device_id)
