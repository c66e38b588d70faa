import uuid
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from campus_queue.models import UserRole

from .common import TokenResponse
from .staff import StaffRead


class AdminSignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=150)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("name cannot be blank")
        return normalized


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class StaffAccessRequest(BaseModel):
    unique_id: str = Field(..., min_length=1, max_length=32)

    @field_validator("unique_id")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not normalized:
            raise ValueError("unique_id cannot be blank")
        return normalized


class RefreshRequest(BaseModel):
    refresh_token: str


class AdminRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    created_at: datetime


class AdminAuthResponse(BaseModel):
    admin: AdminRead
    tokens: TokenResponse


class StaffAuthResponse(BaseModel):
    staff: StaffRead
    tokens: TokenResponse


class AdminProfile(BaseModel):
    kind: Literal["admin"] = "admin"
    user_id: uuid.UUID
    email: str
    name: str


class StaffProfile(BaseModel):
    kind: Literal["staff"] = "staff"
    staff_id: uuid.UUID
    name: str
    department: str


class AnonymousProfile(BaseModel):
    kind: Literal["anonymous"] = "anonymous"


IdentityProfile = Annotated[Union[AdminProfile, StaffProfile, AnonymousProfile], Field(discriminator="kind")]


class MeResponse(BaseModel):
    identity: IdentityProfile
