import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from task_manager.auth.dependencies import AuthContext, require_auth
from task_manager.core.responses import (
    error_response,
    parse_id,
    store_failure_response,
    validation_error_response,
)
from task_manager.repositories.tasks import TaskRepository, get_task_repository
from task_manager.schemas.task import ALLOWED_TASK_UPDATES, TaskCreate, TaskResponse, TaskUpdate

router = APIRouter(tags=['tasks'])

logger = logging.getLogger(__name__)


def parse_completed_filter(value: str | None) -> bool | None:
    if value is None:
        return None
    return value.strip().lower() == 'true'


@router.post('', response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth),
    tasks: TaskRepository = Depends(get_task_repository),
):
    try:
        data = TaskCreate.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)

    try:
        return tasks.create(auth.user.id, data)
    except SQLAlchemyError:
        logger.exception('Creating a task failed for user %s.', auth.user.id)
        return store_failure_response(status_code=status.HTTP_400_BAD_REQUEST)


@router.get('', response_model=list[TaskResponse])
def list_tasks(
    completed: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=0),
    skip: int | None = Query(default=None, ge=0),
    sort_by: str | None = Query(default=None, alias='sortBy'),
    auth: AuthContext = Depends(require_auth),
    tasks: TaskRepository = Depends(get_task_repository),
):
    try:
        return tasks.list_for_owner(
            auth.user.id,
            completed=parse_completed_filter(completed),
            limit=limit,
            skip=skip,
            sort_by=sort_by,
        )
    except SQLAlchemyError:
        logger.exception('Listing tasks failed for user %s.', auth.user.id)
        return store_failure_response()


@router.get('/{task_id}', response_model=TaskResponse)
def read_task(
    task_id: str,
    auth: AuthContext = Depends(require_auth),
    tasks: TaskRepository = Depends(get_task_repository),
):
    lookup_id = parse_id(task_id)
    if lookup_id is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    try:
        task = tasks.get_for_owner(auth.user.id, lookup_id)
    except SQLAlchemyError:
        logger.exception('Reading task %s failed.', lookup_id)
        return store_failure_response()

    if task is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return task


@router.patch('/{task_id}', response_model=TaskResponse)
def update_task(
    task_id: str,
    payload: dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth),
    tasks: TaskRepository = Depends(get_task_repository),
):
    if not set(payload) <= ALLOWED_TASK_UPDATES:
        return error_response('Invalid updates!')

    try:
        updates = TaskUpdate.model_validate(payload).model_dump(exclude_unset=True)
    except ValidationError as exc:
        return validation_error_response(exc)

    lookup_id = parse_id(task_id)
    if lookup_id is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    try:
        task = tasks.get_for_owner(auth.user.id, lookup_id)
        if task is None:
            return Response(status_code=status.HTTP_404_NOT_FOUND)

        tasks.apply_updates(task, updates)
        tasks.save(task)
    except SQLAlchemyError:
        logger.exception('Updating task %s failed.', lookup_id)
        return store_failure_response()

    return task


@router.delete('/{task_id}', response_model=TaskResponse)
def delete_task(
    task_id: str,
    auth: AuthContext = Depends(require_auth),
    tasks: TaskRepository = Depends(get_task_repository),
):
    lookup_id = parse_id(task_id)
    if lookup_id is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    try:
        task = tasks.get_for_owner(auth.user.id, lookup_id)
        if task is None:
            return Response(status_code=status.HTTP_404_NOT_FOUND)

        deleted = TaskResponse.model_validate(task)
        tasks.delete(task)
    except SQLAlchemyError:
        logger.exception('Deleting task %s failed.', lookup_id)
        return store_failure_response()

    return deleted
