import logging
from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from task_manager.auth import jwt_handler
from task_manager.models.user import User
from task_manager.repositories.users import UserRepository, get_user_repository

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """The user a request is authenticated as, and the token it presented."""
    user: User
    token: str


@dataclass(frozen=True)
class AuthFailure:
    reason: str


def authenticate(token: str | None, users: UserRepository) -> AuthContext | AuthFailure:
    if not token:
        return AuthFailure('Missing bearer token')

    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.ExpiredSignatureError:
        return AuthFailure('Token has expired')
    except jwt.InvalidTokenError:
        return AuthFailure('Invalid token')

    try:
        user_id = int(payload.get('sub'))
    except (TypeError, ValueError):
        return AuthFailure('Invalid token subject')

    user = users.get_by_id(user_id)
    if user is None:
        return AuthFailure('User not found')

    # A validly signed token is still rejected once it has been logged out.
    if not users.has_token(user, token):
        return AuthFailure('Token has been revoked')

    return AuthContext(user=user, token=token)


def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    users: UserRepository = Depends(get_user_repository),
) -> AuthContext:
    token = credentials.credentials if credentials else None
    result = authenticate(token, users)
    if isinstance(result, AuthFailure):
        logger.info('Rejected request: %s', result.reason)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Please authenticate.',
            headers={'WWW-Authenticate': 'Bearer'},
        )
    return result
