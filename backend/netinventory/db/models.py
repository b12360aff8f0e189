from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from .database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Network(Base):
    """A monitored network; devices are registered per network."""
    
    __tablename__ = "networks"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    
    # Relationships
    devices = relationship("Device", back_populates="network", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<Network(id={self.id}, name={self.name})>"


class Device(Base):
    """Device model representing a network device."""
    
    __tablename__ = "devices"
    __table_args__ = (
        # MAC is the identity of a device within a network; IPs may be reused
        UniqueConstraint("network_id", "mac_address", name="uq_devices_network_mac"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    network_id = Column(Integer, ForeignKey("networks.id"), nullable=False, index=True)
    mac_address = Column(String(17), index=True, nullable=False)
    ip_address = Column(String(15))
    display_name = Column(String(255))
    brand = Column(String(255))
    
    # Status
    state = Column(Enum("online", "offline", name="device_state"), nullable=False, default="offline")
    
    # Timestamps
    last_seen_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    
    # Relationships
    network = relationship("Network", back_populates="devices")
    
    def __repr__(self):
        return f"<Device(mac={self.mac_address}, ip={self.ip_address}, state={self.state})>"
