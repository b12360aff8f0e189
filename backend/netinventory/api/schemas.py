from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

from ..registry.base import DeviceState


class DeviceResponse(BaseModel):
    """Registered device response schema."""
    model_config = ConfigDict(from_attributes=True)
    
    id: int
    network_id: int
    mac_address: str
    ip_address: Optional[str] = None
    display_name: Optional[str] = None
    brand: Optional[str] = None
    state: DeviceState
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class DeviceUpdate(BaseModel):
    """Device update schema."""
    display_name: Optional[str] = Field(None, max_length=255)
    brand: Optional[str] = Field(None, max_length=255)


class DiscoveredDeviceResponse(BaseModel):
    """Host found by a scan."""
    model_config = ConfigDict(from_attributes=True)
    
    ip_address: str
    mac_address: str


class NetworkCreate(BaseModel):
    """Network creation schema."""
    name: str = Field(min_length=1, max_length=255)


class NetworkUpdate(BaseModel):
    """Network rename schema."""
    name: str = Field(min_length=1, max_length=255)


class NetworkResponse(BaseModel):
    """Network response schema."""
    id: int
    name: str


class ScanRequest(BaseModel):
    """Scan trigger request; unset fields fall back to settings."""
    network_name: Optional[str] = None
    target_ip: Optional[str] = None
    target_mask: Optional[str] = None


class ReconciliationResponse(BaseModel):
    """Counts of registry writes made by a sync."""
    updated_count: int
    added_count: int
    deactivated_count: int


class ScanTriggerResponse(BaseModel):
    """Scan trigger response schema."""
    success: bool
    message: str
    network_name: str
    devices: list[DiscoveredDeviceResponse]
    outcome: ReconciliationResponse
