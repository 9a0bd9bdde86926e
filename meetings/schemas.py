from ninja import Schema
from pydantic import Field, field_validator
from datetime import date, datetime, time
from typing import Optional, List
import enum

from .models import Meeting as MeetingModel, MeetingParticipant as ParticipantModel


class MeetingStatusEnum(str, enum.Enum):
    SCHEDULED = MeetingModel.Status.SCHEDULED
    ENDED = MeetingModel.Status.ENDED
    CLOSED = MeetingModel.Status.CLOSED


class FrequencyEnum(str, enum.Enum):
    WEEKLY = MeetingModel.Frequency.WEEKLY
    BIWEEKLY = MeetingModel.Frequency.BIWEEKLY
    MONTHLY = MeetingModel.Frequency.MONTHLY


class ParticipantStatusEnum(str, enum.Enum):
    PENDING = ParticipantModel.Status.PENDING
    ACCEPTED = ParticipantModel.Status.ACCEPTED
    DECLINED = ParticipantModel.Status.DECLINED


class MeetingSchemaOut(Schema):
    id: int = Field(..., description="Unique identifier for the meeting.")
    title: str = Field(..., description="The title or subject of the meeting.")
    description: str = Field("", description="Free-text agenda or notes.")
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int
    location: str = ""
    created_by_id: int = Field(..., description="Id of the user who owns the meeting.")
    status: MeetingStatusEnum
    is_recurring: bool
    frequency: Optional[FrequencyEnum] = None
    ended_at: Optional[datetime] = Field(None, description="Set only when a one-time meeting is ended.")
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_created_by_id(obj: MeetingModel):
        return obj.created_by_id


class MeetingSchemaIn(Schema):
    title: str = Field(..., min_length=1, max_length=255, description="The title or subject of the meeting (must not be empty).")
    description: Optional[str] = Field("", description="Optional agenda or notes.")
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int = Field(60, gt=0, le=24 * 60, description="Length of the meeting in minutes.")
    location: Optional[str] = Field("", max_length=255)
    is_recurring: bool = False
    frequency: Optional[FrequencyEnum] = Field(None, description="Only stored for recurring meetings.")

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip()


class MeetingSchemaUpdate(Schema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    location: Optional[str] = Field(None, max_length=255)
    is_recurring: Optional[bool] = None
    frequency: Optional[FrequencyEnum] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty_if_provided(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v.strip() if v is not None else v


class ParticipantSchemaOut(Schema):
    id: int
    meeting_id: int
    user_id: Optional[int] = None
    email: str
    full_name: Optional[str] = Field(None, description="Display name from the participant's profile, when they have an account.")
    role: str
    status: ParticipantStatusEnum
    created_at: datetime

    @staticmethod
    def resolve_full_name(obj: ParticipantModel):
        if obj.user_id is None:
            return None
        profile = getattr(obj.user, 'profile', None)
        return profile.full_name if profile and profile.full_name else None


class InviteSchemaIn(Schema):
    email: str = Field(..., description="Email address of the person to invite.")

    @field_validator('email')
    @classmethod
    def email_must_look_valid(cls, v):
        v = v.strip()
        if '@' not in v or v.startswith('@') or v.endswith('@'):
            raise ValueError('A valid email address is required')
        return v


class InviteSchemaOut(Schema):
    participant: ParticipantSchemaOut
    invitation_sent: bool
    message: str


class InvitationResponseIn(Schema):
    status: ParticipantStatusEnum


class EndMeetingSchemaOut(Schema):
    meeting: MeetingSchemaOut
    notification_sent: bool
    notification_error: Optional[str] = None


class SummaryDiscussionItemOut(Schema):
    id: int
    title: str
    description: str
    updated_at: datetime


class SummaryTodoOut(Schema):
    id: int
    title: str
    status: str
    assigned_email: Optional[str] = None
    due_date: Optional[date] = None


class MeetingSummaryOut(Schema):
    meeting_id: int
    completed_discussion_items: List[SummaryDiscussionItemOut]
    todos: List[SummaryTodoOut]
    pending_todo_count: int
    completed_todo_count: int


class ErrorDetail(Schema):
    detail: str = Field(..., description="A message describing the error that occurred.")
