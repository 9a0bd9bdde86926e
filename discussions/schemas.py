from ninja import Schema
from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List
import enum

from .models import DiscussionItem as DiscussionItemModel


class DiscussionStatusEnum(str, enum.Enum):
    PENDING = DiscussionItemModel.Status.PENDING
    DONE = DiscussionItemModel.Status.DONE


class DiscussionItemSchemaOut(Schema):
    id: int
    meeting_id: int
    title: str
    description: str = ""
    status: DiscussionStatusEnum
    order_index: int = Field(..., description="Position of the item within its meeting's list.")
    created_by_id: int
    created_at: datetime
    updated_at: datetime


class DiscussionItemSchemaIn(Schema):
    title: str = Field(..., min_length=1, max_length=255, description="The topic to discuss.")
    description: Optional[str] = ""

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip()


class DiscussionItemSchemaUpdate(Schema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty_if_provided(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip() if v is not None else v


class ReorderSchemaIn(Schema):
    ids: List[int] = Field(..., description="Item ids in the order they are currently displayed.")
    source_index: int = Field(..., ge=0)
    destination_index: int = Field(..., ge=0)
    status: Optional[DiscussionStatusEnum] = Field(DiscussionStatusEnum.PENDING, description="The list being reordered.")


class ReorderSchemaOut(Schema):
    ids: List[int]


class ErrorDetail(Schema):
    detail: str = Field(..., description="A message describing the error that occurred.")
