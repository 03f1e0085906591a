import logging

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from task_manager.auth import jwt_handler
from task_manager.auth.passwords import hash_password, verify_password
from task_manager.database import get_db
from task_manager.errors import DuplicateEmailError, InvalidCredentialsError
from task_manager.models.user import User, UserToken
from task_manager.repositories.tasks import TaskRepository
from task_manager.schemas.user import UserCreate

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = 'Email is already registered.'


class UserRepository:
    """Persistence for users, their session tokens and their avatars.

    Every mutating method commits on its own session and rolls back before
    re-raising when the store rejects the write.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def create(self, data: UserCreate) -> tuple[User, str]:
        """Insert a new user together with its first session token."""
        if self.get_by_email(data.email) is not None:
            raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE)

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
            age=data.age,
        )
        self.db.add(user)
        try:
            # The token subject is the user id, so the row needs one before the token is minted.
            self.db.flush()
            token = self._append_token(user)
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE) from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.save(user)
        logger.info('Created user %s', user.id)
        return user, token

    def find_by_credentials(self, email: str, password: str) -> User:
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError('Unable to login')
        return user

    def issue_token(self, user: User) -> str:
        token = self._append_token(user)
        self.save(user)
        return token

    def has_token(self, user: User, token: str) -> bool:
        return (
            self.db.query(UserToken.id)
            .filter(UserToken.user_id == user.id, UserToken.token == token)
            .first()
            is not None
        )

    def revoke_token(self, user: User, token: str) -> None:
        user.tokens = [entry for entry in user.tokens if entry.token != token]
        self.save(user)

    def revoke_all_tokens(self, user: User) -> None:
        user.tokens = []
        self.save(user)

    def apply_updates(self, user: User, updates: dict) -> None:
        for field, value in updates.items():
            if field == 'password':
                user.hashed_password = hash_password(value)
            else:
                setattr(user, field, value)

    def set_avatar(self, user: User, avatar: bytes | None) -> None:
        user.avatar = avatar
        self.save(user)

    def delete(self, user: User) -> None:
        """Delete ``user`` and every task it owns in a single commit."""
        user_id = user.id
        TaskRepository(self.db).delete_for_owner(user_id)
        self.db.delete(user)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info('Deleted user %s', user_id)

    def save(self, user: User) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE) from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(user)

    def _append_token(self, user: User) -> str:
        token = jwt_handler.create_access_token(subject=str(user.id))
        user.tokens.append(UserToken(token=token))
        return token


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)
