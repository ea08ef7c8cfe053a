"""Crisis record raised by a patient."""

import enum
from datetime import datetime

from pydantic import Field

from mindcare.models.base import Record, utcnow

CRISIS_PREFIX = "crisis"


class CrisisStatus(str, enum.Enum):
    """Lifecycle status of a crisis.

    Intended order is PENDING -> IN_PROGRESS -> RESOLVED. Storage does not
    enforce it; clients only offer the next step.
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


class Crisis(Record):
    """A patient-initiated alert tracked by the owning psychologist."""

    id: str
    patient_id: str
    patient_name: str
    psychologist_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    status: CrisisStatus = CrisisStatus.PENDING
    notes: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status != CrisisStatus.RESOLVED


def crisis_key(crisis_id: str) -> str:
    return f"{CRISIS_PREFIX}:{crisis_id}"


def patient_crisis_index(patient_id: str) -> str:
    return f"patient:{patient_id}:crises"


def psychologist_crisis_index(psychologist_id: str) -> str:
    return f"psychologist:{psychologist_id}:crises"
