"""Minimal async event emitter used between uploaders, pool and dashboard."""
import asyncio
import inspect
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """
    Event emitter whose dispatch is serialized.

    Listeners may be plain functions or coroutine functions. ``emit`` holds
    a lock while it runs them, so two progress events never interleave
    their registry reads and renders.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._lock = asyncio.Lock()

    def on(self, event_name: str, callback: Callable) -> None:
        """Subscribe to an event."""
        listeners = self._listeners.setdefault(event_name, [])
        if callback not in listeners:
            listeners.append(callback)

    def off(self, event_name: str, callback: Callable) -> None:
        """Unsubscribe from an event."""
        listeners = self._listeners.get(event_name, [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    async def emit(self, event_name: str, *args, **kwargs) -> None:
        """Emit an event to all listeners."""
        if not self._listeners.get(event_name):
            return

        async with self._lock:
            for callback in self._listeners[event_name][:]:
                try:
                    result = callback(*args, **kwargs)
                    if inspect.isawaitable(result):
                        await result
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    # A broken listener must not kill the upload that emitted
                    logger.error(f"Error in event listener for {event_name}: {e}")
