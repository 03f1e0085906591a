import logging

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from task_manager.database import get_db
from task_manager.models.task import Task
from task_manager.schemas.task import TaskCreate

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    'createdAt': Task.created_at,
    'updatedAt': Task.updated_at,
    'description': Task.description,
    'completed': Task.completed,
}


class TaskRepository:
    """Tasks scoped to the user that owns them."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, owner_id: int, data: TaskCreate) -> Task:
        task = Task(description=data.description, completed=data.completed, owner_id=owner_id)
        self.db.add(task)
        self.save(task)
        return task

    def list_for_owner(
        self,
        owner_id: int,
        completed: bool | None = None,
        limit: int | None = None,
        skip: int | None = None,
        sort_by: str | None = None,
    ) -> list[Task]:
        query = self.db.query(Task).filter(Task.owner_id == owner_id)

        if completed is not None:
            query = query.filter(Task.completed.is_(completed))

        if sort_by:
            field, _, direction = sort_by.partition(':')
            column = SORTABLE_FIELDS.get(field)
            if column is not None:
                query = query.order_by(column.desc() if direction == 'desc' else column.asc())

        query = query.order_by(Task.id.asc())

        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)

        return query.all()

    def get_for_owner(self, owner_id: int, task_id: int) -> Task | None:
        return self.db.query(Task).filter(Task.id == task_id, Task.owner_id == owner_id).first()

    def apply_updates(self, task: Task, updates: dict) -> None:
        for field, value in updates.items():
            setattr(task, field, value)

    def save(self, task: Task) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(task)

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete_for_owner(self, owner_id: int) -> int:
        """Stage deletion of every task owned by ``owner_id``; the caller commits."""
        deleted = self.db.query(Task).filter(Task.owner_id == owner_id).delete(synchronize_session=False)
        logger.info('Removing %s task(s) owned by user %s', deleted, owner_id)
        return deleted


def get_task_repository(db: Session = Depends(get_db)) -> TaskRepository:
    return TaskRepository(db)
