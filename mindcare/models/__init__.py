# Stored Records
from mindcare.models.account import (
    Account,
    Patient,
    Psychologist,
    UserRole,
    account_adapter,
)
from mindcare.models.crisis import Crisis, CrisisStatus
from mindcare.models.invite import InviteCode
from mindcare.models.message import Message, conversation_key_of

__all__ = [
    "Account",
    "Crisis",
    "CrisisStatus",
    "InviteCode",
    "Message",
    "Patient",
    "Psychologist",
    "UserRole",
    "account_adapter",
    "conversation_key_of",
]
