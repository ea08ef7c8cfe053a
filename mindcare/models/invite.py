"""Invite code record.

A psychologist generates a short code and hands it to a future patient.
The patient signs up with it once; after that the code stays in the store,
marked used, and can never be consumed again.
"""

import re
import secrets
import string
from datetime import datetime

from pydantic import Field

from mindcare.models.base import Record, utcnow

INVITE_PREFIX = "invite"
CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_PATTERN = re.compile(rf"^[A-Z0-9]{{{CODE_LENGTH}}}$")


def generate_code() -> str:
    """Generate a random invite code."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code: str) -> str:
    return code.strip().upper()


def invite_key(code: str) -> str:
    return f"{INVITE_PREFIX}:{code}"


class InviteCode(Record):
    """Single-use code binding a future patient to a psychologist."""

    code: str
    psychologist_id: str
    used: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    used_at: datetime | None = None
    patient_id: str | None = None
