# Database module
from .database import engine, AsyncSessionLocal, init_db
from .models import Device, Network, Base

__all__ = ["engine", "AsyncSessionLocal", "init_db", "Device", "Network", "Base"]
