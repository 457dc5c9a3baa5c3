"""Abonnements aux événements UI.

Ajouter un listener renvoie une Subscription; la libérer retire exactement ce
listener. Un SubscriptionGroup possède plusieurs handles et les libère d'un coup.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass
class Event:
    type: str
    target: Any = None
    key: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class Subscription:
    def __init__(self, target: "EventTarget", event_type: str, listener: Callable):
        self.target = target
        self.event_type = event_type
        self.listener = listener
        self.active = True

    def release(self) -> None:
        if not self.active:
            return
        self.target._remove(self.event_type, self.listener)
        self.active = False


class EventTarget:
    """Élément qui reçoit des événements (formulaire, liste, champ texte...)."""

    def __init__(self, name: str = ""):
        self.name = name
        self._listeners: Dict[str, List[Callable]] = {}

    def add_listener(self, event_type: str, listener: Callable) -> Subscription:
        self._listeners.setdefault(event_type, []).append(listener)
        return Subscription(self, event_type, listener)

    def _remove(self, event_type: str, listener: Callable) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    async def emit(self, event: Event) -> Event:
        """Appelle chaque listener dans l'ordre et attend ceux qui sont async."""
        for listener in list(self._listeners.get(event.type, [])):
            result = listener(event)
            if inspect.isawaitable(result):
                await result
        return event


class SubscriptionGroup:
    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        self._subscriptions.append(subscription)
        return subscription

    def release(self, event_type: str, target: Optional[EventTarget] = None) -> None:
        """Libère les handles d'un type d'événement (avant un re-binding)."""
        for sub in [s for s in self._subscriptions if s.event_type == event_type]:
            if target is None or sub.target is target:
                sub.release()
                self._subscriptions.remove(sub)

    def release_all(self) -> None:
        for sub in self._subscriptions:
            sub.release()
        self._subscriptions = []

    def count(self, event_type: str) -> int:
        return sum(1 for s in self._subscriptions if s.active and s.event_type == event_type)

    def __len__(self) -> int:
        return len(self._subscriptions)
