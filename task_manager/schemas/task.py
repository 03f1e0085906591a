from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator

ALLOWED_TASK_UPDATES = frozenset({'description', 'completed'})


def _normalize_description(value: str | None) -> str:
    normalized = (value or '').strip()
    if not normalized:
        raise ValueError('Description is required.')
    return normalized


class TaskCreate(BaseModel):
    description: str
    completed: bool = False

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str) -> str:
        return _normalize_description(value)


class TaskUpdate(BaseModel):
    description: str | None = None
    completed: bool | None = None

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str:
        return _normalize_description(value)

    @field_validator('completed')
    @classmethod
    def validate_completed(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError('Completed must be true or false.')
        return value


class TaskResponse(BaseModel):
    id: int
    description: str
    completed: bool
    owner: int = Field(validation_alias=AliasChoices('owner_id', 'owner'))
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
