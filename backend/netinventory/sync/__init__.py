# Sync module
from .reconciler import ReconciliationEngine, ReconciliationOutcome

__all__ = ["ReconciliationEngine", "ReconciliationOutcome"]
