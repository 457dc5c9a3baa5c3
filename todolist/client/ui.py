"""Couche UI headless: liste de tâches, formulaires d'auth, indicateur de chargement."""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from todolist.client.events import Event, EventTarget, SubscriptionGroup
from todolist.client.notifications import Channel, Level, Notifier

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8

SUBMIT = "submit"
CLICK = "click"
CHANGE = "change"
KEYDOWN = "keydown"

TaskHandler = Callable[[str], Awaitable[None]]


@dataclass
class TaskRow:
    id: str
    description: str
    completed: bool

    @property
    def label(self) -> str:
        state = "Completed" if self.completed else "Incomplete"
        return f"{state} task: {self.description}"


class TaskListController:
    """Possède les listeners de la liste de tâches pour une session.

    Chaque bind_* attache exactement un listener par type d'événement;
    teardown() retire ceux-là et rien d'autre.
    """

    def __init__(self, form: EventTarget, task_list: EventTarget):
        self.form = form
        self.task_list = task_list
        self.input_value = ""
        self.rows: List[TaskRow] = []
        self.empty_state = True
        self._subscriptions = SubscriptionGroup()

    # rendu

    def render_tasks(self, tasks: List[dict]) -> None:
        self.rows = [
            TaskRow(id=t["id"], description=t["description"], completed=bool(t["completed"]))
            for t in tasks
        ]
        self.empty_state = not self.rows

    def clear_input(self) -> None:
        self.input_value = ""

    # binding

    def _bind(self, target: EventTarget, event_type: str, listener) -> None:
        self._subscriptions.release(event_type, target)
        self._subscriptions.add(target.add_listener(event_type, listener))

    def bind_add_task(self, handler: TaskHandler) -> None:
        async def on_submit(event: Event) -> None:
            event.prevent_default()
            await handler(self.input_value)

        self._bind(self.form, SUBMIT, on_submit)

    def bind_delete_task(self, handler: TaskHandler) -> None:
        async def on_click(event: Event) -> None:
            if event.data.get("role") == "delete" and event.data.get("task_id"):
                await handler(event.data["task_id"])

        self._bind(self.task_list, CLICK, on_click)

    def bind_toggle_task(self, handler: TaskHandler) -> None:
        async def on_change(event: Event) -> None:
            if event.data.get("role") == "checkbox" and event.data.get("task_id"):
                await handler(event.data["task_id"])

        self._bind(self.task_list, CHANGE, on_change)

    def setup_keyboard_navigation(self) -> None:
        async def on_list_keydown(event: Event) -> None:
            # Entrée sur le bouton supprimer = clic
            if event.key == "Enter" and event.data.get("role") == "delete":
                event.prevent_default()
                await self.task_list.emit(Event(CLICK, target=self.task_list, data=dict(event.data)))

        # Entrée dans le champ texte soumet déjà le formulaire, pas de listener dessus
        self._bind(self.task_list, KEYDOWN, on_list_keydown)

    def teardown(self) -> None:
        self._subscriptions.release_all()

    def listener_count(self, event_type: str) -> int:
        return self._subscriptions.count(event_type)

    @property
    def bound(self) -> bool:
        return len(self._subscriptions) > 0


class LoadingIndicator:
    def __init__(self):
        self.active_requests = 0
        self.message = ""

    @property
    def visible(self) -> bool:
        return self.active_requests > 0

    def show(self, message: str = "Loading...") -> None:
        self.message = message
        self.active_requests += 1

    def hide(self) -> None:
        self.active_requests = max(0, self.active_requests - 1)

    def force_hide(self) -> None:
        self.active_requests = 0


def validate_email(email: str) -> bool:
    return bool(EMAIL_REGEX.match(email or ""))


class AuthForms:
    """Formulaires login/register. Les erreurs de validation vont sur le canal persistant."""

    LOGIN = "login"
    REGISTER = "register"

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.visible_form: Optional[str] = None
        self.fields: Dict[str, Dict[str, str]] = {
            self.LOGIN: {"email": "", "password": ""},
            self.REGISTER: {"email": "", "password": "", "password_confirm": ""},
        }
        self.loading: Dict[str, bool] = {self.LOGIN: False, self.REGISTER: False}
        self.login_form = EventTarget("login-form")
        self.register_form = EventTarget("register-form")

    def show_login_form(self) -> None:
        self.visible_form = self.LOGIN
        self.notifier.forms.clear_all()

    def show_register_form(self) -> None:
        self.visible_form = self.REGISTER
        self.notifier.forms.clear_all()

    def hide_auth_forms(self) -> None:
        self.visible_form = None
        self.notifier.forms.clear_all()

    def display_error(self, message: str, form: str = LOGIN) -> None:
        self.notifier.notify(Channel.PERSISTENT, Level.ERROR, message, form=form)

    def message(self, form: str = LOGIN) -> Optional[str]:
        return self.notifier.forms.get(form)

    def validate_login_form(self) -> List[str]:
        data = self.fields[self.LOGIN]
        email = data["email"].strip()
        errors = []
        if not email:
            errors.append("Email is required")
        elif not validate_email(email):
            errors.append("Please enter a valid email address")
        if not data["password"]:
            errors.append("Password is required")
        return errors

    def validate_register_form(self) -> List[str]:
        data = self.fields[self.REGISTER]
        email = data["email"].strip()
        password = data["password"]
        errors = []
        if not email:
            errors.append("Email is required")
        elif not validate_email(email):
            errors.append("Please enter a valid email address")
        if not password:
            errors.append("Password is required")
        elif len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if not data["password_confirm"]:
            errors.append("Please confirm your password")
        elif password != data["password_confirm"]:
            errors.append("Passwords do not match")
        return errors

    def form_data(self, form: str) -> Dict[str, str]:
        data = self.fields[form]
        return {"email": data["email"].strip(), "password": data["password"]}

    def clear_form(self, form: str) -> None:
        for key in self.fields[form]:
            self.fields[form][key] = ""

    def _bind_submit(self, form: str, target: EventTarget, validate, handler):
        async def on_submit(event: Event) -> None:
            event.prevent_default()
            self.notifier.forms.clear(form)
            errors = validate()
            if errors:
                self.display_error(". ".join(errors), form)
                return

            self.loading[form] = True
            try:
                await handler(self.form_data(form))
            finally:
                self.loading[form] = False

        return target.add_listener(SUBMIT, on_submit)

    def bind_login_submit(self, handler):
        return self._bind_submit(self.LOGIN, self.login_form, self.validate_login_form, handler)

    def bind_register_submit(self, handler):
        return self._bind_submit(self.REGISTER, self.register_form, self.validate_register_form, handler)
