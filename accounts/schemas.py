from ninja import Schema
from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional


class ProfileSchemaOut(Schema):
    id: int
    user_id: int
    email: str
    full_name: str
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_user_id(obj):
        return obj.user_id


class ProfileSchemaUpdate(Schema):
    full_name: str = Field(..., max_length=255, description="Display name shown to other meeting participants.")


class SignUpSchemaIn(Schema):
    email: str = Field("", description="Email address; also used as the login name.")
    password: str = Field("", description="Password, at least 6 characters.")
    full_name: Optional[str] = Field("", max_length=255)


class SignInSchemaIn(Schema):
    email: str = Field("", description="Email address used at sign-up.")
    password: str = Field("")


class SessionSchemaOut(Schema):
    access: str = Field(..., description="Short-lived JWT access token, sent as `Authorization: Bearer <token>`.")
    refresh: str = Field(..., description="Refresh token for `/api/token/refresh` and sign-out.")
    profile: ProfileSchemaOut


class SignOutSchemaIn(Schema):
    refresh: str


class PasswordResetRequestIn(Schema):
    email: str


class PasswordResetConfirmIn(Schema):
    uid: str
    token: str
    password: str
    confirm_password: str

    @field_validator('uid', 'token')
    @classmethod
    def must_not_be_blank(cls, v):
        if not v.strip():
            raise ValueError('Reset link parameters cannot be empty')
        return v.strip()


class MessageOut(Schema):
    detail: str


class ErrorDetail(Schema):
    detail: str = Field(..., description="A message describing the error that occurred.")
