import pytest

from task_manager.errors import DuplicateEmailError, InvalidCredentialsError
from task_manager.models.task import Task
from task_manager.models.user import User, UserToken
from task_manager.repositories.tasks import TaskRepository
from task_manager.repositories.users import UserRepository
from task_manager.schemas.task import TaskCreate
from task_manager.schemas.user import UserCreate


@pytest.fixture
def users(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def tasks(db) -> TaskRepository:
    return TaskRepository(db)


def _create_user(users: UserRepository, email: str = 'ada@mail.com'):
    return users.create(UserCreate(name='Ada', email=email, password='Engine123!'))


def test_create_stores_hash_and_first_token(users) -> None:
    user, token = _create_user(users)

    assert user.id is not None
    assert user.hashed_password != 'Engine123!'
    assert user.token_values == [token]
    assert user.avatar is None


def test_create_rejects_duplicate_email(users) -> None:
    _create_user(users)

    with pytest.raises(DuplicateEmailError):
        _create_user(users, email='ADA@mail.com')


def test_find_by_credentials_uses_one_error_for_both_failures(users) -> None:
    _create_user(users)

    with pytest.raises(InvalidCredentialsError) as unknown_email:
        users.find_by_credentials('bob@mail.com', 'Engine123!')
    with pytest.raises(InvalidCredentialsError) as wrong_password:
        users.find_by_credentials('ada@mail.com', 'wrong-secret')

    assert str(unknown_email.value) == str(wrong_password.value)


def test_find_by_credentials_normalizes_email(users) -> None:
    user, _ = _create_user(users)

    assert users.find_by_credentials(' Ada@Mail.com ', 'Engine123!').id == user.id


def test_tokens_are_appended_in_issue_order_and_revoked_individually(users, db) -> None:
    user, first = _create_user(users)
    second = users.issue_token(user)
    third = users.issue_token(user)

    users.revoke_token(user, second)

    assert user.token_values == [first, third]
    assert db.query(UserToken).count() == 2


def test_revoke_all_tokens_clears_the_list(users, db) -> None:
    user, _ = _create_user(users)
    users.issue_token(user)

    users.revoke_all_tokens(user)

    assert user.token_values == []
    assert db.query(UserToken).count() == 0


def test_apply_updates_rehashes_password(users) -> None:
    user, _ = _create_user(users)
    previous_hash = user.hashed_password

    users.apply_updates(user, {'password': 'Compiler42', 'age': 50})
    users.save(user)

    assert user.hashed_password != previous_hash
    assert user.age == 50
    assert users.find_by_credentials('ada@mail.com', 'Compiler42').id == user.id


def test_delete_removes_user_tokens_and_owned_tasks_only(users, tasks, db) -> None:
    doomed, _ = _create_user(users)
    survivor, _ = _create_user(users, email='grace@mail.com')
    doomed_id = doomed.id
    tasks.create(doomed_id, TaskCreate(description='one'))
    tasks.create(doomed_id, TaskCreate(description='two'))
    tasks.create(survivor.id, TaskCreate(description='three'))

    users.delete(doomed)

    assert users.get_by_id(doomed_id) is None
    assert db.query(Task).filter(Task.owner_id == doomed_id).count() == 0
    assert db.query(UserToken).filter(UserToken.user_id == doomed_id).count() == 0
    assert [task.description for task in tasks.list_for_owner(survivor.id)] == ['three']
    assert db.query(User).count() == 1


def test_get_for_owner_scopes_by_owner(users, tasks) -> None:
    owner, _ = _create_user(users)
    stranger, _ = _create_user(users, email='grace@mail.com')
    task = tasks.create(owner.id, TaskCreate(description='private'))

    assert tasks.get_for_owner(owner.id, task.id).id == task.id
    assert tasks.get_for_owner(stranger.id, task.id) is None


def test_create_maps_unique_violation_at_insert_to_duplicate_email(users, monkeypatch) -> None:
    _create_user(users)
    # Simulates a concurrent signup that passed the lookup before the first insert landed.
    monkeypatch.setattr(users, 'get_by_email', lambda email: None)

    with pytest.raises(DuplicateEmailError):
        _create_user(users)
