"""Error taxonomy shared by the scanner, the registry and the sync engine."""


class NetInventoryError(Exception):
    """Base class for every error surfaced to callers."""


class ConfigurationError(NetInventoryError):
    """Required settings (network name, credentials) are missing."""


class InvalidAddressError(NetInventoryError, ValueError):
    """An IPv4 address or netmask is not four 0-255 octets."""


class NoLocalNetworkError(NetInventoryError):
    """No non-internal IPv4 interface is available to derive a scan range."""


class RegistryError(NetInventoryError):
    """A registry lookup or write failed."""


class NetworkNotFoundError(RegistryError):
    """The target network does not exist in the registry."""
    
    def __init__(self, name: str):
        super().__init__(f"Network ({name}) not found")
        self.name = name


class DeviceNotFoundError(RegistryError):
    """A device id does not exist in the registry."""
    
    def __init__(self, device_id: int):
        super().__init__(f"Device {device_id} not found")
        self.device_id = device_id
