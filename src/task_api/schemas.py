from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Generic, List, Optional, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .models import TaskStatus

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Secrets are never trimmed, only emptied to null.
_UNTRIMMED_FIELDS = {"password"}

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _parse_due_date(value: Any) -> date:
    """
    Normalize due_date input into a date.
    - A date (not datetime) is returned as-is.
    - A string must be a real calendar date written as YYYY-MM-DD.
    - Strings that parse as some other ISO8601 form fail with 'date_format',
      anything else fails with 'date'.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value

    if isinstance(value, str):
        if _DATE_RE.match(value):
            try:
                return date.fromisoformat(value)
            except ValueError:
                raise PydanticCustomError("date", "Input should be a valid date")
        try:
            datetime.fromisoformat(value)
        except ValueError:
            raise PydanticCustomError("date", "Input should be a valid date")
        raise PydanticCustomError("date_format", "Date should be in YYYY-MM-DD format")

    raise PydanticCustomError("date", "Input should be a valid date")


def _check_email(value: str) -> str:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError("email", "Input should be a valid email address")
    return value


class _RequestModel(BaseModel):
    """
    Base for request payloads: trims strings and turns empty strings into
    null before field rules run, and ignores unknown keys.
    """

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def normalize_strings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = {}
        for key, value in data.items():
            if isinstance(value, str):
                if key not in _UNTRIMMED_FIELDS:
                    value = value.strip()
                if value == "":
                    value = None
            normalized[key] = value
        return normalized


# PUBLIC_INTERFACE
class RegisterRequest(_RequestModel):
    """Payload for POST /register."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Test User", "email": "test@example.com", "password": "password123"}
        }
    )

    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def validate_email_syntax(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise PydanticCustomError(
                "bytes_too_long",
                "String should have at most {max_bytes} bytes",
                {"max_bytes": BCRYPT_MAX_BYTES},
            )
        return v


# PUBLIC_INTERFACE
class LoginRequest(_RequestModel):
    """Payload for POST /login."""

    email: str = Field(..., max_length=255)
    password: str

    @field_validator("email")
    @classmethod
    def validate_email_syntax(cls, v: str) -> str:
        return _check_email(v)


# PUBLIC_INTERFACE
class TaskCreate(_RequestModel):
    """
    Schema for creating a new task. Every field is required.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write report",
                "description": "Quarterly numbers for the board",
                "due_date": "2025-02-01",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", max_length=255)
    description: str = Field(..., description="Detailed description", min_length=10)
    due_date: date = Field(..., description="Due date in YYYY-MM-DD format")

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> date:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TaskUpdate(_RequestModel):
    """
    Schema for updating an existing task.
    All fields are optional; only provided fields will be updated, and an
    explicit null is rejected rather than treated as absent.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write final report",
                "status": "Completed",
            }
        }
    )

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, min_length=10)
    due_date: Optional[date] = Field(default=None, description="Due date in YYYY-MM-DD format")
    status: Optional[TaskStatus] = Field(default=None, description="Pending, In Progress or Completed")

    @field_validator("title", "description", "status", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise PydanticCustomError("string_type", "Input should be a valid string")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> date:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """Public view of a user; the password hash is never included."""

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Write report",
                "description": "Quarterly numbers for the board",
                "due_date": "2025-02-01",
                "date_completed": None,
                "status": "Pending",
                "owner_id": 3,
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-25T10:15:30.123456",
            }
        }
    )

    id: int
    title: str
    description: str
    due_date: date
    date_completed: Optional[date] = None
    status: TaskStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime


class TokenOut(BaseModel):
    token: str
    type: str = "bearer"


class AuthData(BaseModel):
    user: UserOut
    authorisation: TokenOut


class UserData(BaseModel):
    user: UserOut


class TaskPage(BaseModel):
    """
    One page of the global task listing.
    """

    current_page: int
    data: List[TaskOut]
    per_page: int
    from_: Optional[int] = Field(default=None, alias="from", description="1-based index of the first item")
    to: Optional[int] = Field(default=None, description="1-based index of the last item")
    total: int
    last_page: int
    path: str
    first_page_url: str
    prev_page_url: Optional[str] = None
    next_page_url: Optional[str] = None


DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """
    Standard success envelope: {"status": true, "message": ..., "data": ...}.
    """

    status: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None
