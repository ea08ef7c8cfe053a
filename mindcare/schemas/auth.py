"""Authentication schemas.

Psychologist signup, invite-based patient signup, and sign-in.
"""

import re

from pydantic import EmailStr, Field, field_validator

from mindcare.models.account import UserRole
from mindcare.schemas.base import ApiModel

_PASSWORD_RULE = "Password must be at least 8 characters with uppercase, lowercase, and number"


class PsychologistSignupRequest(ApiModel):
    """Request schema for psychologist registration."""

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    crp: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="Professional registration number (CRP)",
    )

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        """Validate password meets strength requirements."""
        if not re.search(r"[a-z]", v):
            raise ValueError(_PASSWORD_RULE)
        if not re.search(r"[A-Z]", v):
            raise ValueError(_PASSWORD_RULE)
        if not re.search(r"\d", v):
            raise ValueError(_PASSWORD_RULE)
        return v

    @field_validator("name", "crp")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class SignupResponse(ApiModel):
    success: bool = True
    user_id: str


class PatientSignupRequest(ApiModel):
    """Request schema for signing up with an invite code."""

    invite_code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1, max_length=200)
    age: int = Field(..., gt=0, lt=150)
    phone: str = Field(..., min_length=1, max_length=32)

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class Credentials(ApiModel):
    """Generated login for a patient, shown once after signup."""

    email: str
    password: str


class PatientSignupResponse(ApiModel):
    success: bool = True
    user_id: str
    access_token: str | None = None
    credentials: Credentials


class LoginRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: UserRole
