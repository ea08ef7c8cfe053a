"""Crisis schemas."""

from pydantic import Field

from mindcare.models.crisis import Crisis, CrisisStatus
from mindcare.schemas.base import ApiModel


class CrisisResponse(ApiModel):
    crisis: Crisis


class CrisisListResponse(ApiModel):
    crises: list[Crisis]
    count: int
    active_count: int


class CrisisStatusUpdateRequest(ApiModel):
    """Status change; ``notes`` is kept from the stored crisis when omitted."""

    status: CrisisStatus
    notes: str | None = Field(default=None, max_length=4000)
