# Registry module
from .base import DeviceRegistry, DeviceState, KnownIdentity, NewDevice, RegisteredDevice
from .sql import SqlDeviceRegistry

__all__ = ["DeviceRegistry", "DeviceState", "KnownIdentity", "NewDevice", "RegisteredDevice", "SqlDeviceRegistry"]
