import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from task_manager.auth import jwt_handler
from task_manager.auth.dependencies import AuthContext, AuthFailure, authenticate, require_auth
from task_manager.auth.passwords import hash_password, verify_password
from task_manager.repositories.users import UserRepository
from task_manager.schemas.user import UserCreate


@pytest.fixture
def users(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def created(users):
    return users.create(UserCreate(name='Ada', email='ada@mail.com', password='Engine123!'))


def test_hash_password_never_returns_plaintext() -> None:
    hashed = hash_password('Engine123!')

    assert hashed != 'Engine123!'
    assert verify_password('Engine123!', hashed)
    assert not verify_password('engine123!', hashed)


def test_access_tokens_carry_subject_and_are_unique() -> None:
    first = jwt_handler.create_access_token(subject='7')
    second = jwt_handler.create_access_token(subject='7')

    assert first != second
    assert jwt_handler.decode_access_token(first)['sub'] == '7'


def test_decode_rejects_expired_token() -> None:
    token = jwt_handler.create_access_token(subject='7', expires_minutes=-1)

    with pytest.raises(jwt.ExpiredSignatureError):
        jwt_handler.decode_access_token(token)


def test_authenticate_resolves_user_for_issued_token(users, created) -> None:
    user, token = created

    result = authenticate(token, users)

    assert isinstance(result, AuthContext)
    assert result.user.id == user.id
    assert result.token == token


@pytest.mark.parametrize(
    ('token', 'reason'),
    [
        (None, 'Missing bearer token'),
        ('', 'Missing bearer token'),
        ('garbage', 'Invalid token'),
    ],
)
def test_authenticate_rejects_missing_or_malformed_tokens(users, token, reason) -> None:
    assert authenticate(token, users) == AuthFailure(reason)


def test_authenticate_rejects_expired_token(users, created) -> None:
    user, _ = created
    expired = jwt_handler.create_access_token(subject=str(user.id), expires_minutes=-1)

    assert authenticate(expired, users) == AuthFailure('Token has expired')


def test_authenticate_rejects_token_signed_with_another_key(users, created) -> None:
    user, _ = created
    forged = jwt.encode({'sub': str(user.id)}, 'some-other-secret', algorithm='HS256')

    assert authenticate(forged, users) == AuthFailure('Invalid token')


def test_authenticate_rejects_valid_token_that_was_never_stored(users, created) -> None:
    user, _ = created
    unstored = jwt_handler.create_access_token(subject=str(user.id))

    assert authenticate(unstored, users) == AuthFailure('Token has been revoked')


def test_authenticate_rejects_revoked_token(users, created) -> None:
    user, token = created

    users.revoke_token(user, token)

    assert authenticate(token, users) == AuthFailure('Token has been revoked')


def test_authenticate_rejects_unknown_user(users) -> None:
    token = jwt_handler.create_access_token(subject='9999')

    assert authenticate(token, users) == AuthFailure('User not found')


def test_authenticate_rejects_non_numeric_subject(users) -> None:
    token = jwt_handler.create_access_token(subject='ada@mail.com')

    assert authenticate(token, users) == AuthFailure('Invalid token subject')


def test_require_auth_raises_401_without_credentials(users) -> None:
    with pytest.raises(HTTPException) as exception_info:
        require_auth(credentials=None, users=users)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Please authenticate.'


def test_require_auth_returns_context_for_valid_credentials(users, created) -> None:
    user, token = created
    credentials = HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)

    context = require_auth(credentials=credentials, users=users)

    assert context.user.id == user.id
