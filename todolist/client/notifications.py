"""Routage des notifications vers deux canaux.

TRANSIENT: toasts qui disparaissent seuls (résultat d'une opération async).
PERSISTENT: message attaché à un formulaire, visible jusqu'à correction.
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


class Channel(enum.Enum):
    TRANSIENT = "transient"
    PERSISTENT = "persistent"


class Level(enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class Toast:
    id: int
    level: Level
    title: str
    message: str = ""
    expires_at: Optional[float] = None


class ToastCenter:
    def __init__(self, default_duration: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.default_duration = default_duration
        self.clock = clock
        self._toasts: Dict[int, Toast] = {}
        self._next_id = 1

    def show(self, level: Level, title: str, message: str = "", duration: Optional[float] = None) -> int:
        if duration is None:
            duration = self.default_duration
        toast_id = self._next_id
        self._next_id += 1
        expires_at = self.clock() + duration if duration > 0 else None
        self._toasts[toast_id] = Toast(toast_id, level, title, message, expires_at)
        return toast_id

    def dismiss(self, toast_id: int) -> None:
        self._toasts.pop(toast_id, None)

    def dismiss_all(self) -> None:
        self._toasts.clear()

    def visible(self) -> List[Toast]:
        now = self.clock()
        for toast_id in [t.id for t in self._toasts.values() if t.expires_at is not None and t.expires_at <= now]:
            del self._toasts[toast_id]
        return list(self._toasts.values())


class FormMessages:
    """Un message par formulaire ('login', 'register')."""

    def __init__(self):
        self._messages: Dict[str, tuple] = {}

    def display(self, form: str, level: Level, message: str) -> None:
        self._messages[form] = (level, message)

    def clear(self, form: str) -> None:
        self._messages.pop(form, None)

    def clear_all(self) -> None:
        self._messages.clear()

    def get(self, form: str) -> Optional[str]:
        entry = self._messages.get(form)
        return entry[1] if entry else None

    def level(self, form: str) -> Optional[Level]:
        entry = self._messages.get(form)
        return entry[0] if entry else None


class Notifier:
    def __init__(self, toasts: ToastCenter, forms: FormMessages):
        self.toasts = toasts
        self.forms = forms

    def notify(self, channel: Channel, level: Level, title: str, message: str = "",
               form: Optional[str] = None) -> None:
        if not isinstance(channel, Channel):
            raise TypeError(f"channel must be a Channel, got {channel!r}")

        if channel is Channel.TRANSIENT:
            self.toasts.show(level, title, message)
            return

        if form is None:
            raise ValueError("persistent notifications need a form")
        self.forms.display(form, level, title if not message else f"{title} {message}".strip())

    def session_expired(self, form: str = "login") -> None:
        """Seul cas autorisé sur les deux canaux; les autres toasts sont retirés d'abord."""
        logger.info("Session expired, forcing logout")
        self.toasts.dismiss_all()
        self.forms.display(form, Level.ERROR, SESSION_EXPIRED_MESSAGE)
        self.toasts.show(Level.WARNING, "Session expired", "Please log in again to continue.")
