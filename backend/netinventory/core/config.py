from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""
    
    # Application
    APP_NAME: str = "Network Inventory"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./netinventory.db"
    
    # Registry network this agent reports into
    NETWORK_NAME: Optional[str] = None
    
    # Network Scanning
    TARGET_NETWORK_IP: Optional[str] = None  # Scan a non-local subnet
    TARGET_NETWORK_MASK: Optional[str] = None  # Defaults to 255.255.255.0 with TARGET_NETWORK_IP
    SCAN_BATCH_SIZE: int = 50  # concurrent probes per batch
    PING_TIMEOUT: int = 1  # seconds to wait for an echo reply
    PING_CALL_TIMEOUT: float = 2.0  # hard ceiling per ping call
    
    class Config:
        env_file = ".env"
        case_sensitive = True
    
    def require_network_name(self) -> str:
        """Return NETWORK_NAME or fail before any scan is attempted."""
        if not self.NETWORK_NAME:
            raise ConfigurationError("NETWORK_NAME environment variable is required")
        return self.NETWORK_NAME


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
