"""Account lookup, psychologist signup, and the psychologist's patient list."""

from pydantic import ValidationError

from mindcare.core.identity import IdentityGateway
from mindcare.logging_config import get_logger
from mindcare.models.account import (
    ACCOUNT_PREFIX,
    Patient,
    Psychologist,
    UserRole,
    account_adapter,
    account_key,
    patient_index,
)
from mindcare.store import AppendLog, KeyValueStore, fetch_records

logger = get_logger(__name__)


async def get_account(
    store: KeyValueStore,
    user_id: str,
) -> Patient | Psychologist | None:
    """Load an account by id in a single lookup.

    Returns None when no account is stored for the id.
    """
    document = await store.get(account_key(user_id))
    if document is None:
        return None
    return account_adapter.validate_python(document)


async def get_patient(store: KeyValueStore, user_id: str) -> Patient | None:
    account = await get_account(store, user_id)
    return account if isinstance(account, Patient) else None


async def get_psychologist(store: KeyValueStore, user_id: str) -> Psychologist | None:
    account = await get_account(store, user_id)
    return account if isinstance(account, Psychologist) else None


async def save_account(store: KeyValueStore, account: Patient | Psychologist) -> None:
    await store.set(account_key(account.id), account.to_document())


async def create_psychologist(
    store: KeyValueStore,
    gateway: IdentityGateway,
    email: str,
    password: str,
    name: str,
    crp: str,
) -> Psychologist:
    """Register a psychologist login and store the profile.

    Raises:
        AccountExists: If the email is already registered.
    """
    identity = await gateway.create_user(email, password, UserRole.PSYCHOLOGIST.value)

    psychologist = Psychologist(
        id=identity.user_id,
        email=identity.email,
        name=name,
        crp=crp,
    )
    await save_account(store, psychologist)

    logger.info("Psychologist registered", psychologist_id=psychologist.id)
    return psychologist


async def list_patients(store: KeyValueStore, psychologist_id: str) -> list[Patient]:
    """Patients enrolled with a psychologist, in enrollment order."""
    patient_ids = await AppendLog(store, patient_index(psychologist_id)).read()
    patients = []
    for document in await fetch_records(store, ACCOUNT_PREFIX, patient_ids):
        try:
            patients.append(Patient.model_validate(document))
        except ValidationError:
            logger.warning(
                "Patient index points at a non-patient account",
                psychologist_id=psychologist_id,
                account_id=document.get("id"),
            )
    return patients
