"""User model definitions."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, LargeBinary, String, func
from sqlalchemy.orm import relationship

from task_manager.database import Base


class User(Base):
    """Represents an application user and the credential material tied to it."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    age = Column(Float, nullable=False, default=0)
    avatar = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    tokens = relationship(
        "UserToken",
        back_populates="user",
        order_by="UserToken.id",
        cascade="all, delete-orphan",
    )

    @property
    def token_values(self) -> list[str]:
        return [entry.token for entry in self.tokens]


class UserToken(Base):
    """A session token issued to a user at signup or login."""
    __tablename__ = "user_tokens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(String, nullable=False)

    user = relationship("User", back_populates="tokens")
