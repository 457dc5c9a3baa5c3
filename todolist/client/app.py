"""Coordinateur du client: session, contrôleur de liste, notifications.

Un TaskListController par session logique. Logout (volontaire ou forcé par un 401)
le démonte avant de l'oublier; le login suivant en construit un neuf.
"""

import logging
import time
from typing import Callable, Optional

from httpx import TransportError

from todolist.client.api import ApiClient, ApiError
from todolist.client.config import ClientConfig
from todolist.client.events import EventTarget
from todolist.client.notifications import Channel, FormMessages, Level, Notifier, ToastCenter
from todolist.client.session import AuthResult, AuthService, SessionManager
from todolist.client.storage import MemoryStorage, TaskCache
from todolist.client.tasks import TaskManager, is_valid_description
from todolist.client.ui import CLICK, AuthForms, LoadingIndicator, TaskListController

logger = logging.getLogger(__name__)

ADD_TASK_FORM = "add-task"


class TodoApp:
    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        storage=None,
        transport=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or ClientConfig()
        storage = storage if storage is not None else MemoryStorage()

        self.api = ApiClient(
            self.config.api_base_url,
            self.config.api_max_retries,
            self.config.api_retry_delay,
            transport=transport,
        )
        self.session = SessionManager(
            storage, self.config.token_storage_key, self.config.user_storage_key
        )
        self.auth = AuthService(self.api, self.session)
        self.notifier = Notifier(ToastCenter(self.config.toast_duration, clock), FormMessages())
        self.auth_forms = AuthForms(self.notifier)
        self.loading = LoadingIndicator()
        self.task_manager = TaskManager(
            self.api, TaskCache(storage, self.config.tasks_storage_key)
        )

        # éléments de la page: ils survivent aux sessions, les listeners non
        self.add_task_form = EventTarget("add-task-form")
        self.task_list = EventTarget("task-list")
        self.logout_button = EventTarget("logout-button")

        self.controller: Optional[TaskListController] = None
        self.app_visible = False
        self.user_email: Optional[str] = None

        # listeners liés à la page entière, attachés une seule fois
        self.auth_forms.bind_login_submit(self._on_login_submit)
        self.auth_forms.bind_register_submit(self._on_register_submit)
        self.logout_button.add_listener(CLICK, lambda event: self.logout())

    async def aclose(self) -> None:
        await self.api.aclose()

    @property
    def toasts(self) -> ToastCenter:
        return self.notifier.toasts

    # cycle de vie

    async def start(self) -> None:
        if self.auth.restore():
            await self.initialize_authenticated_app()
            if self.controller is not None:
                self.show_app()
            return
        self.hide_app()
        self.auth_forms.show_login_form()

    def show_app(self) -> None:
        self.app_visible = True
        self.auth_forms.hide_auth_forms()
        user = self.session.get_user() or {}
        self.user_email = user.get("email")

    def hide_app(self) -> None:
        self.app_visible = False
        self.user_email = None

    async def initialize_authenticated_app(self) -> None:
        if self.controller is not None:
            logger.debug("Authenticated app already initialized")
            return

        self.controller = TaskListController(self.add_task_form, self.task_list)
        self.controller.bind_add_task(self.add_task)
        self.controller.bind_delete_task(self.delete_task)
        self.controller.bind_toggle_task(self.toggle_task)
        self.controller.setup_keyboard_navigation()

        await self.load_tasks()

    def _drop_controller(self) -> None:
        self.task_manager.reset()
        if self.controller is not None:
            self.controller.render_tasks([])
            self.controller.teardown()
        self.controller = None

    def _end_session(self) -> None:
        self.auth.logout()
        self._drop_controller()
        self.hide_app()
        self.auth_forms.show_login_form()

    # auth

    async def login(self, email: str, password: str) -> AuthResult:
        result = await self.auth.login(email, password)
        await self._after_auth(result, AuthForms.LOGIN)
        return result

    async def register(self, email: str, password: str) -> AuthResult:
        result = await self.auth.register(email, password)
        await self._after_auth(result, AuthForms.REGISTER)
        return result

    async def _on_login_submit(self, form_data: dict) -> None:
        await self.login(form_data["email"], form_data["password"])

    async def _on_register_submit(self, form_data: dict) -> None:
        await self.register(form_data["email"], form_data["password"])

    async def _after_auth(self, result: AuthResult, form: str) -> None:
        if not result.success:
            self.auth_forms.display_error(result.error or "Authentication failed", form)
            return
        if self.controller is not None:
            # nouvel utilisateur sans logout: le snapshot précédent ne lui appartient pas
            self._drop_controller()
        self.notifier.notify(Channel.TRANSIENT, Level.SUCCESS, "Welcome!", "You have successfully logged in.")
        await self.initialize_authenticated_app()
        if self.controller is not None:
            self.show_app()

    def logout(self) -> None:
        self._end_session()
        self.notifier.notify(Channel.TRANSIENT, Level.INFO, "Logged out", "You have been logged out successfully.")
        logger.info("User logged out")

    def handle_authentication_error(self) -> None:
        if self.controller is None and not self.session.is_authenticated():
            # déjà déconnecté par une autre requête en échec
            return
        self._end_session()
        self.notifier.session_expired(AuthForms.LOGIN)

    def _report_failure(self, exc: Exception, title: str) -> None:
        if isinstance(exc, ApiError) and exc.is_unauthorized:
            self.handle_authentication_error()
            return
        logger.error("%s: %s", title, exc)
        self.notifier.notify(Channel.TRANSIENT, Level.ERROR, title, "Please try again.")

    # tâches: mutation, puis rechargement, puis rendu, puis annonce

    async def load_tasks(self) -> None:
        self.loading.show("Loading tasks...")
        try:
            tasks = await self.task_manager.refresh()
            if self.controller is not None:
                self.controller.render_tasks(tasks)
        except (ApiError, TransportError) as exc:
            self._report_failure(exc, "Failed to load tasks")
        finally:
            self.loading.hide()

    async def add_task(self, description: str) -> None:
        if not is_valid_description(description):
            self.notifier.notify(
                Channel.PERSISTENT, Level.ERROR, "Task description cannot be empty", form=ADD_TASK_FORM
            )
            return
        self.notifier.forms.clear(ADD_TASK_FORM)

        try:
            task = await self.task_manager.add_task(description)
        except (ApiError, TransportError) as exc:
            self._report_failure(exc, "Failed to add task")
            return

        if task and self.controller is not None:
            self.controller.clear_input()
            await self.load_tasks()
            if self.controller is None:
                return
            self.notifier.notify(Channel.TRANSIENT, Level.SUCCESS, "Task added", "Your task has been added successfully.")

    async def delete_task(self, task_id: str) -> None:
        try:
            deleted = await self.task_manager.delete_task(task_id)
        except (ApiError, TransportError) as exc:
            self._report_failure(exc, "Failed to delete task")
            return

        if deleted:
            await self.load_tasks()
            if self.controller is None:
                return
            self.notifier.notify(Channel.TRANSIENT, Level.SUCCESS, "Task deleted", "Your task has been removed.")

    async def toggle_task(self, task_id: str) -> None:
        try:
            updated = await self.task_manager.toggle_task_completion(task_id)
        except (ApiError, TransportError) as exc:
            self._report_failure(exc, "Failed to update task")
            return

        if updated:
            await self.load_tasks()
            if self.controller is None:
                return
            task = self.task_manager.find(task_id)
            if task is not None:
                state = "completed" if task["completed"] else "reopened"
                self.notifier.notify(Channel.TRANSIENT, Level.SUCCESS, f"Task {state}")
