"""Account records: patients and psychologists.

Both roles share the ``account:{id}`` namespace and carry a ``role`` tag,
so resolving "who is this user" is a single lookup.
"""

import enum
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from mindcare.models.base import Record, utcnow

ACCOUNT_PREFIX = "account"


class UserRole(str, enum.Enum):
    """Role tag stored on every account."""

    PATIENT = "patient"
    PSYCHOLOGIST = "psychologist"


class Psychologist(Record):
    """A psychologist, created at signup."""

    role: Literal["psychologist"] = "psychologist"
    id: str
    email: str
    name: str
    crp: str
    created_at: datetime = Field(default_factory=utcnow)


class Patient(Record):
    """A patient, created by consuming an invite code.

    Bound to exactly one psychologist for its whole life.
    """

    role: Literal["patient"] = "patient"
    id: str
    name: str
    age: int = Field(gt=0)
    phone: str
    psychologist_id: str
    created_at: datetime = Field(default_factory=utcnow)


Account = Annotated[Union[Patient, Psychologist], Field(discriminator="role")]

account_adapter: TypeAdapter[Patient | Psychologist] = TypeAdapter(Account)


def account_key(user_id: str) -> str:
    return f"{ACCOUNT_PREFIX}:{user_id}"


def patient_index(psychologist_id: str) -> str:
    """Partition of the psychologist -> patient ids log."""
    return f"psychologist:{psychologist_id}:patients"
