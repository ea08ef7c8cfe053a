"""Crisis lifecycle: creation, status changes, and listings.

Status policy is PENDING -> IN_PROGRESS -> RESOLVED. ``set_crisis_status``
accepts any status and does not check the order; the psychologist UI only
offers the next step. Re-sending the same status is harmless.
"""

import uuid

from mindcare.core.exceptions import CrisisNotFound, PatientNotFound
from mindcare.logging_config import get_logger
from mindcare.models.crisis import (
    CRISIS_PREFIX,
    Crisis,
    CrisisStatus,
    crisis_key,
    patient_crisis_index,
    psychologist_crisis_index,
)
from mindcare.services.accounts import get_patient
from mindcare.store import AppendLog, KeyValueStore, fetch_records

logger = get_logger(__name__)


async def create_crisis(store: KeyValueStore, patient_id: str) -> Crisis:
    """Raise a crisis for a patient and index it for both parties.

    Returns the stored record so callers can render it without a re-fetch.

    Raises:
        PatientNotFound: If the id does not belong to a patient.
    """
    patient = await get_patient(store, patient_id)
    if patient is None:
        raise PatientNotFound()

    crisis = Crisis(
        id=str(uuid.uuid4()),
        patient_id=patient.id,
        patient_name=patient.name,
        psychologist_id=patient.psychologist_id,
    )
    await store.set(crisis_key(crisis.id), crisis.to_document())
    await AppendLog(store, patient_crisis_index(patient.id)).append(crisis.id)
    await AppendLog(store, psychologist_crisis_index(patient.psychologist_id)).append(
        crisis.id
    )

    logger.info(
        "Crisis created",
        crisis_id=crisis.id,
        patient_id=patient.id,
        psychologist_id=patient.psychologist_id,
    )
    return crisis


async def get_crisis(store: KeyValueStore, crisis_id: str) -> Crisis | None:
    document = await store.get(crisis_key(crisis_id))
    return None if document is None else Crisis.model_validate(document)


async def set_crisis_status(
    store: KeyValueStore,
    crisis_id: str,
    status: CrisisStatus,
    notes: str | None = None,
) -> Crisis:
    """Overwrite a crisis status, merging notes only when provided.

    Empty notes keep the stored value. Indexes are left untouched.

    Raises:
        CrisisNotFound: If the id is unknown.
    """
    crisis = await get_crisis(store, crisis_id)
    if crisis is None:
        raise CrisisNotFound()

    previous = crisis.status
    updated = crisis.model_copy(
        update={"status": CrisisStatus(status), "notes": notes or crisis.notes}
    )
    await store.set(crisis_key(crisis_id), updated.to_document())

    logger.info(
        "Crisis status changed",
        crisis_id=crisis_id,
        from_status=previous.value,
        to_status=updated.status.value,
        notes_attached=bool(notes),
    )
    return updated


async def _list_from_index(store: KeyValueStore, partition: str) -> list[Crisis]:
    crisis_ids = await AppendLog(store, partition).read()
    return [
        Crisis.model_validate(document)
        for document in await fetch_records(store, CRISIS_PREFIX, crisis_ids)
    ]


async def list_for_patient(store: KeyValueStore, patient_id: str) -> list[Crisis]:
    """All crises a patient raised, oldest first."""
    return await _list_from_index(store, patient_crisis_index(patient_id))


async def list_for_psychologist(
    store: KeyValueStore,
    psychologist_id: str,
) -> list[Crisis]:
    """All crises raised by a psychologist's patients, oldest first."""
    return await _list_from_index(store, psychologist_crisis_index(psychologist_id))


def count_active(crises: list[Crisis]) -> int:
    """Number of crises not yet resolved."""
    return sum(1 for crisis in crises if crisis.is_active)
