"""Local network discovery and device registry reconciliation."""

__version__ = "1.0.0"
