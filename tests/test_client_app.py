import httpx
import pytest
import pytest_asyncio

from todolist.client.app import ADD_TASK_FORM, TodoApp
from todolist.client.config import ClientConfig
from todolist.client.events import Event
from todolist.client.notifications import SESSION_EXPIRED_MESSAGE, Level
from todolist.client.storage import MemoryStorage
from todolist.client.ui import CHANGE, CLICK, KEYDOWN, SUBMIT, AuthForms

EVENT_TYPES = (SUBMIT, CLICK, CHANGE, KEYDOWN)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_todo(app, storage):
    created = []

    def factory(store=None):
        todo = TodoApp(
            ClientConfig(api_base_url="http://testserver", api_retry_delay=0),
            storage=store if store is not None else storage,
            transport=httpx.ASGITransport(app=app),
        )
        created.append(todo)
        return todo

    factory.created = created
    return factory


@pytest_asyncio.fixture
async def todo(make_todo):
    todo = make_todo()
    yield todo
    for instance in make_todo.created:
        await instance.aclose()


async def signup(todo, email="alice@example.com", password="password123"):
    result = await todo.register(email, password)
    assert result.success, result.error
    return result


def toast_titles(todo):
    return [t.title for t in todo.toasts.visible()]


# ========== CYCLE DE VIE DES LISTENERS ==========

@pytest.mark.asyncio
async def test_listener_count_across_login_logout_login(todo):
    await signup(todo)
    assert todo.app_visible is True
    assert todo.user_email == "alice@example.com"
    for event_type in EVENT_TYPES:
        assert todo.controller.listener_count(event_type) == 1

    first_controller = todo.controller
    todo.logout()
    assert todo.controller is None
    for event_type in EVENT_TYPES:
        assert first_controller.listener_count(event_type) == 0
    assert todo.task_list.listener_count(CLICK) == 0
    assert todo.add_task_form.listener_count(SUBMIT) == 0

    result = await todo.login("alice@example.com", "password123")
    assert result.success
    for event_type in EVENT_TYPES:
        assert todo.controller.listener_count(event_type) == 1
    assert todo.task_list.listener_count(CLICK) == 1
    assert todo.task_list.listener_count(CHANGE) == 1
    assert todo.task_list.listener_count(KEYDOWN) == 1
    assert todo.add_task_form.listener_count(SUBMIT) == 1


@pytest.mark.asyncio
async def test_initialize_twice_does_not_duplicate_listeners(todo):
    await signup(todo)
    await todo.initialize_authenticated_app()
    assert todo.task_list.listener_count(CLICK) == 1


# ========== OPÉRATIONS VIA LES ÉVÉNEMENTS ==========

@pytest.mark.asyncio
async def test_add_toggle_delete_through_events(todo):
    await signup(todo)
    assert todo.controller.empty_state is True

    todo.controller.input_value = "  buy milk "
    await todo.add_task_form.emit(Event(SUBMIT))
    assert [row.description for row in todo.controller.rows] == ["buy milk"]
    assert todo.controller.input_value == ""
    assert "Task added" in toast_titles(todo)
    task_id = todo.controller.rows[0].id

    await todo.task_list.emit(Event(CHANGE, data={"role": "checkbox", "task_id": task_id}))
    assert todo.controller.rows[0].completed is True
    assert "Task completed" in toast_titles(todo)

    await todo.task_list.emit(Event(CHANGE, data={"role": "checkbox", "task_id": task_id}))
    assert todo.controller.rows[0].completed is False

    await todo.task_list.emit(Event(KEYDOWN, key="Enter", data={"role": "delete", "task_id": task_id}))
    assert todo.controller.rows == []
    assert todo.controller.empty_state is True
    assert "Task deleted" in toast_titles(todo)


@pytest.mark.asyncio
async def test_single_delete_click_sends_one_request(todo):
    await signup(todo)
    await todo.add_task("first")
    await todo.add_task("second")
    second_id = next(row.id for row in todo.controller.rows if row.description == "second")

    # deux sessions dans la même page: un clic ne doit supprimer qu'une tâche
    todo.logout()
    await todo.login("alice@example.com", "password123")
    await todo.task_list.emit(Event(CLICK, data={"role": "delete", "task_id": second_id}))

    assert [row.description for row in todo.controller.rows] == ["first"]
    assert toast_titles(todo).count("Task deleted") == 1


@pytest.mark.asyncio
async def test_blank_task_shows_form_error_without_request(todo):
    await signup(todo)
    await todo.add_task("   ")
    assert todo.notifier.forms.get(ADD_TASK_FORM) == "Task description cannot be empty"
    assert todo.controller.rows == []

    await todo.add_task("real task")
    assert todo.notifier.forms.get(ADD_TASK_FORM) is None


@pytest.mark.asyncio
async def test_tasks_are_isolated_between_accounts(todo):
    await signup(todo, "alice@example.com")
    await todo.add_task("alice only")
    todo.logout()

    await signup(todo, "bob@example.com")
    assert todo.controller.rows == []
    assert todo.task_manager.get_tasks() == []


@pytest.mark.asyncio
async def test_switching_user_without_logout_reloads_tasks(todo):
    await signup(todo, "alice@example.com")
    await todo.add_task("alice secret")

    await signup(todo, "bob@example.com")
    assert todo.user_email == "bob@example.com"
    assert todo.controller.rows == []
    assert todo.task_manager.get_tasks() == []
    for event_type in EVENT_TYPES:
        assert todo.controller.listener_count(event_type) == 1
    assert todo.task_list.listener_count(CLICK) == 1

    await todo.add_task("bob task")
    assert [row.description for row in todo.controller.rows] == ["bob task"]


# ========== AUTH VIA LES FORMULAIRES ==========

@pytest.mark.asyncio
async def test_login_form_submit_shows_server_error(todo):
    await signup(todo)
    todo.logout()

    todo.auth_forms.fields[AuthForms.LOGIN].update(email="alice@example.com", password="wrong-password")
    await todo.auth_forms.login_form.emit(Event(SUBMIT))

    assert todo.controller is None
    assert todo.auth_forms.message(AuthForms.LOGIN) == "Invalid email or password"


@pytest.mark.asyncio
async def test_register_form_submit_opens_app(todo):
    fields = todo.auth_forms.fields[AuthForms.REGISTER]
    fields.update(email="new@example.com", password="password123", password_confirm="password123")
    await todo.auth_forms.register_form.emit(Event(SUBMIT))

    assert todo.app_visible is True
    assert todo.auth_forms.visible_form is None
    assert "Welcome!" in toast_titles(todo)


@pytest.mark.asyncio
async def test_logout_button(todo, storage):
    await signup(todo)
    await todo.logout_button.emit(Event(CLICK))

    assert todo.app_visible is False
    assert todo.auth_forms.visible_form == AuthForms.LOGIN
    assert storage.get_item("authToken") is None
    assert "Logged out" in toast_titles(todo)


# ========== SESSION EXPIRÉE ==========

@pytest.mark.asyncio
async def test_forced_logout_on_401_notifies_once(todo, storage):
    await signup(todo)
    await todo.add_task("keep me")
    task_id = todo.controller.rows[0].id

    todo.api.set_auth_token("tampered.token.value")
    await todo.task_list.emit(Event(CHANGE, data={"role": "checkbox", "task_id": task_id}))

    assert todo.controller is None
    assert todo.app_visible is False
    assert storage.get_item("authToken") is None
    assert todo.auth_forms.message(AuthForms.LOGIN) == SESSION_EXPIRED_MESSAGE
    toasts = todo.toasts.visible()
    assert [t.title for t in toasts] == ["Session expired"]
    assert toasts[0].level is Level.WARNING

    # une deuxième requête en échec ne produit pas de seconde notice
    todo.handle_authentication_error()
    assert toast_titles(todo) == ["Session expired"]


@pytest.mark.asyncio
async def test_login_after_forced_logout_rebinds_once(todo):
    await signup(todo)
    todo.api.set_auth_token("tampered.token.value")
    await todo.load_tasks()
    assert todo.controller is None

    await todo.login("alice@example.com", "password123")
    for event_type in EVENT_TYPES:
        assert todo.controller.listener_count(event_type) == 1


# ========== RESTAURATION ==========

@pytest.mark.asyncio
async def test_start_restores_session_from_storage(todo, make_todo, storage):
    await signup(todo)
    await todo.add_task("persisted")

    reloaded = make_todo(storage)
    await reloaded.start()

    assert reloaded.app_visible is True
    assert reloaded.user_email == "alice@example.com"
    assert [row.description for row in reloaded.controller.rows] == ["persisted"]


@pytest.mark.asyncio
async def test_start_without_session_shows_login(todo):
    await todo.start()
    assert todo.app_visible is False
    assert todo.controller is None
    assert todo.auth_forms.visible_form == AuthForms.LOGIN


@pytest.mark.asyncio
async def test_start_with_invalid_stored_token_expires_session(make_todo):
    store = MemoryStorage({"authToken": "stale.token.value", "currentUser": '{"email": "old@example.com"}'})
    todo = make_todo(store)
    await todo.start()

    assert todo.app_visible is False
    assert todo.controller is None
    assert store.get_item("authToken") is None
    assert todo.auth_forms.message(AuthForms.LOGIN) == SESSION_EXPIRED_MESSAGE
    for instance in make_todo.created:
        await instance.aclose()
