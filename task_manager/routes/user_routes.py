import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from task_manager.auth.dependencies import AuthContext, require_auth
from task_manager.core.responses import (
    error_response,
    parse_id,
    store_failure_response,
    validation_error_response,
)
from task_manager.errors import DuplicateEmailError, InvalidCredentialsError, InvalidImageError
from task_manager.repositories.users import UserRepository, get_user_repository
from task_manager.schemas.user import (
    ALLOWED_USER_UPDATES,
    AuthResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from task_manager.services.avatar import AvatarUpload, normalize_avatar, read_avatar_upload

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)


@router.post('/signup', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: dict[str, Any] = Body(...),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        data = UserCreate.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)

    try:
        user, token = users.create(data)
    except DuplicateEmailError as exc:
        return error_response(str(exc))
    except SQLAlchemyError:
        logger.exception('Signup failed while saving the new user.')
        return store_failure_response(status_code=status.HTTP_400_BAD_REQUEST)

    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post('/login', response_model=AuthResponse)
def login(
    payload: dict[str, Any] = Body(...),
    users: UserRepository = Depends(get_user_repository),
):
    # Every failure gets the same empty 400 so callers cannot probe which emails exist.
    try:
        credentials = UserLogin.model_validate(payload)
        user = users.find_by_credentials(credentials.email, credentials.password)
        token = users.issue_token(user)
    except (ValidationError, InvalidCredentialsError, DuplicateEmailError):
        logger.info('Failed login attempt.')
        return Response(status_code=status.HTTP_400_BAD_REQUEST)
    except SQLAlchemyError:
        logger.exception('Login failed while saving the session token.')
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post('/logout')
def logout(
    auth: AuthContext = Depends(require_auth),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        users.revoke_token(auth.user, auth.token)
    except SQLAlchemyError:
        logger.exception('Logout failed for user %s.', auth.user.id)
        return store_failure_response()

    return Response(status_code=status.HTTP_200_OK)


@router.post('/logoutAll')
def logout_all(
    auth: AuthContext = Depends(require_auth),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        users.revoke_all_tokens(auth.user)
    except SQLAlchemyError:
        logger.exception('Logout of all sessions failed for user %s.', auth.user.id)
        return store_failure_response()

    return Response(status_code=status.HTTP_200_OK)


@router.post('/me/avatar')
def upload_avatar(
    auth: AuthContext = Depends(require_auth),
    upload: AvatarUpload = Depends(read_avatar_upload),
    users: UserRepository = Depends(get_user_repository),
):
    if not upload.ok:
        return error_response(upload.error)

    try:
        users.set_avatar(auth.user, normalize_avatar(upload.content))
    except InvalidImageError as exc:
        return error_response(str(exc))
    except SQLAlchemyError:
        logger.exception('Saving avatar failed for user %s.', auth.user.id)
        return store_failure_response(status_code=status.HTTP_400_BAD_REQUEST)

    return Response(status_code=status.HTTP_200_OK)


@router.get('/{user_id}/avatar')
def get_avatar(user_id: str, users: UserRepository = Depends(get_user_repository)):
    lookup_id = parse_id(user_id)
    if lookup_id is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    try:
        user = users.get_by_id(lookup_id)
    except SQLAlchemyError:
        logger.exception('Avatar lookup failed for user %s.', lookup_id)
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    if user is None or not user.avatar:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return Response(content=user.avatar, media_type='image/png')


@router.delete('/me/avatar')
def delete_avatar(
    auth: AuthContext = Depends(require_auth),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        users.set_avatar(auth.user, None)
    except SQLAlchemyError:
        logger.exception('Removing avatar failed for user %s.', auth.user.id)
        return store_failure_response(status_code=status.HTTP_400_BAD_REQUEST)

    return Response(status_code=status.HTTP_200_OK)


@router.get('/me', response_model=UserResponse)
def read_me(auth: AuthContext = Depends(require_auth)):
    return auth.user


@router.patch('/me', response_model=UserResponse)
def update_me(
    payload: dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth),
    users: UserRepository = Depends(get_user_repository),
):
    if not set(payload) <= ALLOWED_USER_UPDATES:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'Error': 'Invalid Updates!'})

    try:
        updates = UserUpdate.model_validate(payload).model_dump(exclude_unset=True)
    except ValidationError as exc:
        return validation_error_response(exc)

    try:
        users.apply_updates(auth.user, updates)
        users.save(auth.user)
    except DuplicateEmailError as exc:
        return error_response(str(exc))
    except SQLAlchemyError:
        logger.exception('Profile update failed for user %s.', auth.user.id)
        return store_failure_response()

    return auth.user


@router.delete('/me', response_model=UserResponse)
def delete_me(
    auth: AuthContext = Depends(require_auth),
    users: UserRepository = Depends(get_user_repository),
):
    deleted = UserResponse.model_validate(auth.user)

    try:
        users.delete(auth.user)
    except SQLAlchemyError:
        logger.exception('Account deletion failed for user %s.', auth.user.id)
        return store_failure_response()

    return deleted
