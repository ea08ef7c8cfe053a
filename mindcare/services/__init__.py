# Business Logic Services
from mindcare.services.accounts import (
    create_psychologist,
    get_account,
    get_patient,
    get_psychologist,
    list_patients,
)
from mindcare.services.conversations import append_message, history
from mindcare.services.crises import (
    count_active,
    create_crisis,
    list_for_patient,
    list_for_psychologist,
    set_crisis_status,
)
from mindcare.services.invites import (
    Enrollment,
    consume_invite,
    generate_invite,
    validate_invite,
)

__all__ = [
    "Enrollment",
    "append_message",
    "consume_invite",
    "count_active",
    "create_crisis",
    "create_psychologist",
    "generate_invite",
    "get_account",
    "get_patient",
    "get_psychologist",
    "history",
    "list_for_patient",
    "list_for_psychologist",
    "list_patients",
    "set_crisis_status",
    "validate_invite",
]
