import pytest

from todolist.models.task import Task
from todolist.models.user import User
from todolist.services import task_service
from todolist.services.task_service import MutationStatus
from todolist.services.user_service import (
    DuplicateEmailError,
    create_user,
    find_user_by_email,
    find_user_by_id,
)


# Helper pour créer un user
def make_user(db, email):
    return create_user(db, email, "not-a-real-hash")


# ============ TESTS user_service.py ============

def test_create_and_find_user(db):
    user = make_user(db, "alice@example.com")
    assert find_user_by_email(db, "alice@example.com").id == user.id
    assert find_user_by_id(db, user.id).email == "alice@example.com"
    assert find_user_by_email(db, "ALICE@example.com") is None


def test_create_user_duplicate(db):
    make_user(db, "alice@example.com")
    with pytest.raises(DuplicateEmailError):
        make_user(db, "alice@example.com")


def test_deleting_user_cascades_to_tasks(db):
    user = make_user(db, "alice@example.com")
    task_service.create_task(db, user.id, "one")
    task_service.create_task(db, user.id, "two")

    db.delete(user)
    db.commit()
    assert db.query(Task).count() == 0


# ============ TESTS task_service.py ============

def test_create_task_trims_and_defaults(db):
    user = make_user(db, "alice@example.com")
    task = task_service.create_task(db, user.id, "  write report \n")
    assert task.description == "write report"
    assert task.completed is False
    assert task.user_id == user.id


def test_create_task_rejects_blank(db):
    user = make_user(db, "alice@example.com")
    with pytest.raises(ValueError):
        task_service.create_task(db, user.id, "   ")
    assert db.query(Task).count() == 0


def test_list_tasks_only_returns_owned(db):
    alice = make_user(db, "alice@example.com")
    bob = make_user(db, "bob@example.com")
    task_service.create_task(db, alice.id, "alice task")
    task_service.create_task(db, bob.id, "bob task")

    assert [t.description for t in task_service.list_tasks(db, alice.id)] == ["alice task"]
    assert [t.description for t in task_service.list_tasks(db, bob.id)] == ["bob task"]


def test_update_task_ok(db):
    user = make_user(db, "alice@example.com")
    task = task_service.create_task(db, user.id, "draft")

    outcome = task_service.update_task(db, task.id, user.id, description="done", completed=True)
    assert outcome.ok
    assert outcome.task.description == "done"
    assert outcome.task.completed is True


def test_update_task_partial_patch_keeps_other_fields(db):
    user = make_user(db, "alice@example.com")
    task = task_service.create_task(db, user.id, "keep me")

    outcome = task_service.update_task(db, task.id, user.id, completed=True)
    assert outcome.task.description == "keep me"


def test_update_task_not_owner_is_forbidden(db):
    alice = make_user(db, "alice@example.com")
    bob = make_user(db, "bob@example.com")
    task = task_service.create_task(db, alice.id, "alice's")

    outcome = task_service.update_task(db, task.id, bob.id, completed=True)
    assert outcome.status is MutationStatus.FORBIDDEN
    assert outcome.task is None

    db.expire_all()
    assert db.query(Task).filter(Task.id == task.id).one().completed is False


def test_update_task_not_found(db):
    user = make_user(db, "alice@example.com")
    outcome = task_service.update_task(db, "missing", user.id, completed=True)
    assert outcome.status is MutationStatus.NOT_FOUND


def test_delete_task(db):
    user = make_user(db, "alice@example.com")
    task_id = task_service.create_task(db, user.id, "bye").id

    assert task_service.delete_task(db, task_id, user.id).ok
    assert task_service.delete_task(db, task_id, user.id).status is MutationStatus.NOT_FOUND


def test_delete_task_not_owner(db):
    alice = make_user(db, "alice@example.com")
    bob = make_user(db, "bob@example.com")
    task = task_service.create_task(db, alice.id, "alice's")

    outcome = task_service.delete_task(db, task.id, bob.id)
    assert outcome.status is MutationStatus.FORBIDDEN
    assert db.query(Task).filter(Task.id == task.id).count() == 1


def test_user_relationship_lists_tasks(db):
    user = make_user(db, "alice@example.com")
    task_service.create_task(db, user.id, "via relationship")
    db.expire_all()
    assert [t.description for t in db.query(User).one().tasks] == ["via relationship"]
