"""
Engine Event Channel

Observer registration for notifications the host transport relays to clients.
"""

from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from ..core.logging import get_logger

logger = get_logger(__name__)


class EngineEvent(str, Enum):
    """Notifications emitted by the engine."""

    RESULT_CAPTURED = "result-captured"
    ANALYSIS_COMPLETE = "analysis-complete"
    DATA_LOADED = "data-loaded"
    RESULTS_CLEARED = "results-cleared"
    CLOSED = "closed"


EventCallback = Callable[[EngineEvent, Any], None]


class EventChannel:
    """
    Delivers engine events to registered callbacks.

    Emission is synchronous with the operation that triggers it. A failing
    callback is logged and skipped; its exception never reaches the engine.
    """

    def __init__(self) -> None:
        self._subscriptions: List[Tuple[EventCallback, Optional[Set[EngineEvent]]]] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def register(
        self, callback: EventCallback, events: Optional[Iterable[EngineEvent]] = None
    ) -> None:
        """
        Register a callback.

        Args:
            callback: Called as ``callback(event, payload)``
            events: Events to receive (all events if None)
        """
        wanted = {EngineEvent(e) for e in events} if events is not None else None
        self.unregister(callback)
        self._subscriptions.append((callback, wanted))

    def unregister(self, callback: EventCallback) -> None:
        """
        Unregister a callback.

        Args:
            callback: Callback to remove
        """
        self._subscriptions = [
            (registered, wanted)
            for registered, wanted in self._subscriptions
            if registered != callback
        ]

    def emit(self, event: EngineEvent, payload: Any = None) -> int:
        """
        Deliver an event to every interested callback.

        Returns:
            Number of callbacks that handled the event without raising
        """
        delivered = 0
        for callback, wanted in list(self._subscriptions):
            if wanted is not None and event not in wanted:
                continue
            try:
                callback(event, payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Error in {event.value} callback {callback!r}: {e}")
        return delivered

    def clear(self) -> None:
        self._subscriptions.clear()
