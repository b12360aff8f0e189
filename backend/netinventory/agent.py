"""One-shot scan of the local network, synced into the device registry."""

import asyncio
import logging
import sys
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .core.config import Settings, get_settings
from .core.errors import NetInventoryError, RegistryError
from .core.logging import configure_logging
from .db.database import AsyncSessionLocal, init_db
from .registry.base import DeviceRegistry
from .registry.sql import SqlDeviceRegistry
from .scanner.network_scanner import NetworkScanner
from .sync.reconciler import ReconciliationEngine, ReconciliationOutcome

logger = logging.getLogger(__name__)


async def run_once(
    settings: Settings,
    registry: Optional[DeviceRegistry] = None,
    scanner: Optional[NetworkScanner] = None
) -> ReconciliationOutcome:
    """Scan once and reconcile the result into settings.NETWORK_NAME."""
    network_name = settings.require_network_name()

    if registry is None:
        try:
            await init_db()
        except SQLAlchemyError as e:
            raise RegistryError(f"Failed to initialize database: {e}") from e
        registry = SqlDeviceRegistry(AsyncSessionLocal)
    scanner = scanner or NetworkScanner(batch_size=settings.SCAN_BATCH_SIZE)

    logger.info("🔍 Starting network scan...")
    devices = await scanner.run_scan(
        target_ip=settings.TARGET_NETWORK_IP,
        target_mask=settings.TARGET_NETWORK_MASK
    )
    logger.info("📊 Found %d device(s)", len(devices))
    for device in devices:
        logger.debug("   - %s (%s)", device.ip_address, device.mac_address)

    reconciler = ReconciliationEngine(registry)
    return await reconciler.sync_devices(network_name, devices)


def main() -> int:
    settings = get_settings()
    configure_logging(settings.DEBUG)

    try:
        outcome = asyncio.run(run_once(settings))
    except NetInventoryError as e:
        logger.error("❌ Error: %s", e)
        return 1

    logger.info("Sync result: %s", outcome.as_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
