"""
User and authentication schemas
"""

from pydantic import EmailStr, Field, HttpUrl, field_validator
from typing import Optional, Literal, Union
from datetime import datetime

from drawn_to_run.schemas.base import BaseSchema, IDSchema, TimestampSchema
from drawn_to_run.models.user import UserRole


class UserRegister(BaseSchema):
    """User registration schema"""
    email: EmailStr
    name: str
    password: str
    role: UserRole = UserRole.PARTICIPANT

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "runner@example.com",
                "name": "Demo Runner",
                "password": "Demo123!",
                "role": "participant"
            }
        }
    }

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if len(v) < 2:
            raise ValueError('Name must be at least 2 characters')
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v


class UserLogin(BaseSchema):
    """User login schema"""
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not v:
            raise ValueError('Password is required')
        return v


class UserUpdate(BaseSchema):
    """Profile update; an empty profile_image clears it"""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(None, max_length=500)
    profile_image: Optional[Union[HttpUrl, Literal[""]]] = None


class UserSummary(BaseSchema):
    """Author/organizer card shown next to comments"""
    id: int
    name: str
    profile_image: Optional[str] = None


class UserResponse(IDSchema, TimestampSchema):
    """User response schema"""
    email: str
    name: str
    role: UserRole
    email_verified: bool
    profile_image: Optional[str] = None
    bio: Optional[str] = None


class AuthResponse(BaseSchema):
    """Token issued on register/login"""
    user: UserResponse
    token: str


class CurrentUserResponse(BaseSchema):
    user: UserResponse


class LogoutResponse(BaseSchema):
    message: str
    instructions: str


class TokenPayload(BaseSchema):
    """Claims carried by an access token"""
    sub: int
    email: str
    role: UserRole
    jti: Optional[str] = None
    exp: Optional[datetime] = None
