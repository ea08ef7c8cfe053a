"""Invite code schemas."""

from pydantic import Field

from mindcare.schemas.base import ApiModel


class InviteCreateResponse(ApiModel):
    """Response after generating an invite code."""

    code: str


class ValidateInviteRequest(ApiModel):
    code: str = Field(..., min_length=1, max_length=16)


class ValidateInviteResponse(ApiModel):
    valid: bool
