"""Invite code generation, validation, and consumption.

A psychologist generates a code; a patient signs up with it exactly once.
Signup runs as a series of single-key writes in a fixed order:

1. read the invite and reject it if missing or used
2. create the patient's login through the identity gateway
3. store the patient record bound to the invite's psychologist
4. append the patient id to the psychologist's patient log
5. mark the invite used

The store has no multi-key transactions. If the process dies after step 3
and before step 5, the patient exists while the invite still reads as
unused. That window is logged on every signup so it can be reconciled.
"""

from dataclasses import dataclass

from mindcare.config import settings
from mindcare.core.exceptions import InvalidInvite, StoreFailure, ValidationFailure
from mindcare.core.identity import IdentityGateway
from mindcare.core.security import generate_password
from mindcare.logging_config import get_logger
from mindcare.models.account import Patient, UserRole, patient_index
from mindcare.models.base import utcnow
from mindcare.models.invite import (
    CODE_PATTERN,
    InviteCode,
    generate_code,
    invite_key,
    normalize_code,
)
from mindcare.services.accounts import save_account
from mindcare.store import AppendLog, KeyValueStore

logger = get_logger(__name__)


@dataclass
class Enrollment:
    """Result of a successful patient signup.

    ``password`` is generated for the patient and only ever returned here.
    """

    patient: Patient
    email: str
    password: str
    access_token: str | None


def check_code_format(code: str) -> str:
    """Normalize a code and reject anything that cannot be an invite.

    Raises:
        ValidationFailure: If the code is not 6 uppercase alphanumerics.
    """
    normalized = normalize_code(code)
    if not CODE_PATTERN.match(normalized):
        raise ValidationFailure("Invite code must be 6 letters or digits")
    return normalized


async def get_invite(store: KeyValueStore, code: str) -> InviteCode | None:
    document = await store.get(invite_key(normalize_code(code)))
    return None if document is None else InviteCode.model_validate(document)


async def generate_invite(store: KeyValueStore, psychologist_id: str) -> InviteCode:
    """Create a fresh unused invite for a psychologist.

    Codes are random; there is no retry loop. The write refuses to replace
    an existing code, so a collision surfaces as a retryable StoreFailure
    instead of silently reassigning someone else's invite.
    """
    invite = InviteCode(code=generate_code(), psychologist_id=psychologist_id)

    written = await store.set(
        invite_key(invite.code), invite.to_document(), only_if_absent=True
    )
    if not written:
        logger.warning("Invite code collision", psychologist_id=psychologist_id)
        raise StoreFailure("Could not allocate an invite code, please try again")

    logger.info(
        "Invite code generated",
        psychologist_id=psychologist_id,
        code=invite.code,
    )
    return invite


async def validate_invite(store: KeyValueStore, code: str) -> bool:
    """Return True if the code exists and has not been used. Read-only."""
    invite = await get_invite(store, code)
    return invite is not None and not invite.used


def _patient_email(user_hint: str) -> str:
    return f"patient_{user_hint}@{settings.patient_email_domain}"


async def consume_invite(
    store: KeyValueStore,
    gateway: IdentityGateway,
    code: str,
    name: str,
    age: int,
    phone: str,
) -> Enrollment:
    """Sign a patient up with an invite code.

    Raises:
        InvalidInvite: If the code is unknown or already used.
        ValidationFailure: If the code is malformed.
    """
    code = check_code_format(code)
    invite = await get_invite(store, code)
    if invite is None or invite.used:
        logger.warning("Rejected invite code", code=code)
        raise InvalidInvite()

    # Patients have no email of their own; mint a login they can reuse
    password = generate_password()
    email = _patient_email(generate_password().lower())
    identity = await gateway.create_user(email, password, UserRole.PATIENT.value)

    patient = Patient(
        id=identity.user_id,
        name=name,
        age=age,
        phone=phone,
        psychologist_id=invite.psychologist_id,
    )
    await save_account(store, patient)
    logger.info(
        "Patient stored, invite not yet marked used",
        patient_id=patient.id,
        code=code,
    )

    await AppendLog(store, patient_index(invite.psychologist_id)).append(patient.id)

    used = invite.model_copy(
        update={"used": True, "used_at": utcnow(), "patient_id": patient.id}
    )
    await store.set(invite_key(code), used.to_document())

    logger.info(
        "Invite consumed",
        code=code,
        patient_id=patient.id,
        psychologist_id=invite.psychologist_id,
    )

    access_token: str | None = None
    try:
        _, access_token = await gateway.sign_in(email, password)
    except Exception:
        # Signup already succeeded; the client can sign in with the credentials
        logger.exception("Patient auto sign-in failed", patient_id=patient.id)

    return Enrollment(
        patient=patient,
        email=email,
        password=password,
        access_token=access_token,
    )
