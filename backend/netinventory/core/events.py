import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, dict], Awaitable[Any]]


class EventEmitter:
    """Fan-out of progress events to registered async callbacks."""
    
    def __init__(self):
        self._callbacks: list[EventCallback] = []
    
    def register_callback(self, callback: EventCallback):
        """Register a callback for scan updates."""
        self._callbacks.append(callback)
    
    def unregister_callback(self, callback: EventCallback):
        """Unregister a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)
    
    async def _notify_callbacks(self, event_type: str, data: dict):
        """Notify all registered callbacks."""
        for callback in self._callbacks:
            try:
                await callback(event_type, data)
            except Exception:
                logger.exception("Callback error while handling %s", event_type)
