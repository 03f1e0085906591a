from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator

ALLOWED_USER_UPDATES = frozenset({'name', 'email', 'password', 'age'})
MIN_PASSWORD_LENGTH = 7


def _normalize_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Name is required.')
    return normalized


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _validate_password(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < MIN_PASSWORD_LENGTH:
        raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long.')
    if 'password' in normalized.lower():
        raise ValueError('Password cannot contain "password".')
    return normalized


def _validate_age(value: float) -> float:
    if value < 0:
        raise ValueError('Age must be a positive number.')
    return value


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    age: float = 0

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_password(value)

    @field_validator('age')
    @classmethod
    def validate_age(cls, value: float) -> float:
        return _validate_age(value)


class UserUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None
    age: float | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError('Name is required.')
        return _normalize_name(value)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value):
        if value is None:
            raise ValueError('Email is required.')
        return _normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError('Password is required.')
        return _validate_password(value)

    @field_validator('age')
    @classmethod
    def validate_age(cls, value: float | None) -> float | None:
        if value is None:
            raise ValueError('Age must be a positive number.')
        return _validate_age(value)


class UserLogin(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    age: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
