from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = ['LEDGER_CHANGED', 'HISTORY_CHANGED', 'RATES_REFRESHED', 'Event', 'EventBus']


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], object]


class EventBus:
    """Synchronous publish/subscribe used to tell the UI that owned state changed."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[object]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        return [handler(event, payload) for handler in list(self._subscribers[name])]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


LEDGER_CHANGED = "LEDGER_CHANGED"
HISTORY_CHANGED = "HISTORY_CHANGED"
RATES_REFRESHED = "RATES_REFRESHED"
