from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.errors import ConfigurationError, NetworkNotFoundError
from ..db.database import AsyncSessionLocal
from ..registry.sql import SqlDeviceRegistry
from ..scanner.network_scanner import NetworkScanner
from ..sync.reconciler import ReconciliationEngine
from .schemas import (
    DeviceResponse,
    DeviceUpdate,
    DiscoveredDeviceResponse,
    NetworkCreate,
    NetworkResponse,
    NetworkUpdate,
    ReconciliationResponse,
    ScanRequest,
    ScanTriggerResponse
)

router = APIRouter()


def get_registry() -> SqlDeviceRegistry:
    """Dependency for the device registry."""
    return SqlDeviceRegistry(AsyncSessionLocal)


def get_scanner() -> NetworkScanner:
    """Dependency for the network scanner."""
    return NetworkScanner()


@router.get("/networks", response_model=list[NetworkResponse])
async def get_networks(registry: SqlDeviceRegistry = Depends(get_registry)):
    """List registered networks."""
    return [NetworkResponse(id=id_, name=name) for id_, name in await registry.list_networks()]


@router.post("/networks", response_model=NetworkResponse, status_code=201)
async def create_network(network: NetworkCreate, registry: SqlDeviceRegistry = Depends(get_registry)):
    """Register a network that scans can report into."""
    if await registry.find_network_id_by_name(network.name) is not None:
        raise HTTPException(status_code=409, detail="Network already exists")
    
    network_id = await registry.add_network(network.name)
    return NetworkResponse(id=network_id, name=network.name)


@router.patch("/networks/{network_name}", response_model=NetworkResponse)
async def rename_network(
    network_name: str,
    network_update: NetworkUpdate,
    registry: SqlDeviceRegistry = Depends(get_registry)
):
    """Rename a network."""
    network_id = await registry.find_network_id_by_name(network_name)
    if network_id is None:
        raise NetworkNotFoundError(network_name)

    if network_update.name != network_name:
        if await registry.find_network_id_by_name(network_update.name) is not None:
            raise HTTPException(status_code=409, detail="Network already exists")
        await registry.rename_network(network_id, network_update.name)

    return NetworkResponse(id=network_id, name=network_update.name)


@router.delete("/networks/{network_name}")
async def delete_network(network_name: str, registry: SqlDeviceRegistry = Depends(get_registry)):
    """Delete a network and every device registered on it."""
    network_id = await registry.find_network_id_by_name(network_name)
    if network_id is None:
        raise NetworkNotFoundError(network_name)

    await registry.delete_network(network_id)
    return {"success": True, "message": "Network deleted"}


@router.get("/networks/{network_name}/devices", response_model=list[DeviceResponse])
async def get_network_devices(network_name: str, registry: SqlDeviceRegistry = Depends(get_registry)):
    """Get all devices registered on a network."""
    network_id = await registry.find_network_id_by_name(network_name)
    if network_id is None:
        raise NetworkNotFoundError(network_name)
    
    devices = await registry.list_devices(network_id)
    return [DeviceResponse.model_validate(d) for d in devices]


@router.patch("/devices/{device_id}", response_model=DeviceResponse)
async def update_device(
    device_id: int,
    device_update: DeviceUpdate,
    registry: SqlDeviceRegistry = Depends(get_registry)
):
    """Set a device's display name and brand."""
    update_data = device_update.model_dump(exclude_unset=True)
    if update_data:
        await registry.update_device(device_id, update_data)

    device = await registry.get_device(device_id)
    return DeviceResponse.model_validate(device)


@router.delete("/devices/{device_id}")
async def delete_device(device_id: int, registry: SqlDeviceRegistry = Depends(get_registry)):
    """Delete a device from the registry."""
    await registry.delete_device(device_id)
    return {"success": True, "message": "Device deleted"}


@router.post("/scan", response_model=ScanTriggerResponse)
async def trigger_scan(
    request: ScanRequest,
    registry: SqlDeviceRegistry = Depends(get_registry),
    scanner: NetworkScanner = Depends(get_scanner)
):
    """Scan the network and sync the result into the registry."""
    network_name = request.network_name or settings.NETWORK_NAME
    if not network_name:
        raise ConfigurationError("A network name is required (request body or NETWORK_NAME)")
    
    # Fail before a long scan when the network is unknown
    if await registry.find_network_id_by_name(network_name) is None:
        raise NetworkNotFoundError(network_name)
    
    target_ip = request.target_ip or settings.TARGET_NETWORK_IP
    target_mask = request.target_mask or settings.TARGET_NETWORK_MASK
    devices = await scanner.run_scan(target_ip=target_ip, target_mask=target_mask)
    
    outcome = await ReconciliationEngine(registry).sync_devices(network_name, devices)
    
    return ScanTriggerResponse(
        success=True,
        message=f"Scan completed: {len(devices)} device(s) found",
        network_name=network_name,
        devices=[DiscoveredDeviceResponse.model_validate(d) for d in devices],
        outcome=ReconciliationResponse(**outcome.as_dict())
    )
