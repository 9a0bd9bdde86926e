from ninja import Schema
from pydantic import Field, field_validator
from datetime import date, datetime
from typing import Optional, List
import enum

from .models import Todo as TodoModel


class TodoStatusEnum(str, enum.Enum):
    PENDING = TodoModel.Status.PENDING
    DONE = TodoModel.Status.DONE


class TodoScopeEnum(str, enum.Enum):
    ALL = "all"
    ASSIGNED = "assigned"
    CREATED = "created"


class TodoSchemaOut(Schema):
    id: int = Field(..., description="Unique identifier for the task.")
    meeting_id: Optional[int] = Field(None, description="Meeting the task belongs to; null for standalone tasks.")
    meeting_title: Optional[str] = None
    title: str
    description: str = ""
    assigned_to_id: Optional[int] = None
    assigned_email: Optional[str] = None
    created_by_id: int
    status: TodoStatusEnum
    due_date: Optional[date] = None
    order_index: Optional[int] = Field(None, description="Manual position within its list, when ordering is enabled.")
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_meeting_title(obj: TodoModel):
        return obj.meeting.title if obj.meeting_id else None


class TodoSchemaIn(Schema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = ""
    assigned_to: Optional[int] = Field(None, description="Id of the user responsible for the task.")
    assigned_email: Optional[str] = Field(None, description="Email of the person responsible, when they have no account yet.")
    due_date: Optional[date] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip()


class PersonalTodoSchemaIn(Schema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = ""
    due_date: Optional[date] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip()


class TodoSchemaUpdate(Schema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    assigned_email: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[TodoStatusEnum] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty_if_provided(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip() if v is not None else v


class ReorderSchemaIn(Schema):
    ids: List[int] = Field(..., description="Task ids in the order they are currently displayed.")
    source_index: int = Field(..., ge=0, description="Current position of the task in the displayed list.")
    destination_index: int = Field(..., ge=0, description="Position the task is moved to.")
    meeting_id: Optional[int] = Field(None, description="Reorder this meeting's tasks; omit to reorder your standalone tasks.")
    status: Optional[TodoStatusEnum] = Field(TodoStatusEnum.PENDING, description="The list being reordered.")


class ReorderSchemaOut(Schema):
    ids: List[int] = Field(..., description="Task ids in their new order.")


class ErrorDetail(Schema):
    detail: str = Field(..., description="A message describing the error that occurred.")
