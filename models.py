from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, PlainSerializer, field_validator

from app.db import to_utc_naive

Priority = Literal["low", "medium", "high"]
Status = Literal["pending", "completed"]


def _object_id_to_str(value):
    return str(value) if value is not None else value


def _utc_isoformat(value: datetime) -> str:
    # Stored datetimes are naive UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


UtcDatetime = Annotated[datetime, PlainSerializer(_utc_isoformat, return_type=str, when_used="json")]


# Stored records. Built from Mongo documents, so ``_id`` is accepted for ``id``.

class UserRecord(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    email: str
    name: str
    password_hash: str = Field(default="", exclude=True)
    created_at: UtcDatetime

    stringify_ids = field_validator("id", mode="before")(_object_id_to_str)


class CategoryRecord(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    user_id: str
    name: str
    color: str
    created_at: UtcDatetime

    stringify_ids = field_validator("id", "user_id", mode="before")(_object_id_to_str)


class TodoRecord(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    user_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[UtcDatetime] = None
    priority: Priority = "medium"
    category: Optional[str] = None
    status: Status = "pending"
    created_at: UtcDatetime
    updated_at: UtcDatetime

    stringify_ids = field_validator("id", "user_id", mode="before")(_object_id_to_str)


# Auth

class UserRegister(BaseModel):
    email: EmailStr
    password: str
    name: str


class UserLogin(BaseModel):
    email: str
    password: str


class AuthTokens(BaseModel):
    access_token: str
    token_type: str
    expires_in: int


class TokenClaims(BaseModel):
    user_id: str
    email: Optional[str] = None


class RequestContext(BaseModel):
    """The authenticated caller, as resolved by the auth gate."""

    user: UserRecord

    @property
    def user_id(self) -> str:
        return self.user.id


# Categories

class CategoryCreate(BaseModel):
    name: str
    color: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None


# Todos

class TodoCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    category: Optional[str] = None

    normalize_due_date = field_validator("due_date")(to_utc_naive)


class TodoUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    status: Optional[Status] = None

    normalize_due_date = field_validator("due_date")(to_utc_naive)


class TodoFilters(BaseModel):
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    due_date_start: Optional[datetime] = None
    due_date_end: Optional[datetime] = None
    search: Optional[str] = None

    normalize_dates = field_validator("due_date_start", "due_date_end")(to_utc_naive)
