"""Psychologist router.

Invite generation, the patient roster, and the crisis inbox.
"""

from fastapi import APIRouter, Depends, Path, status

from mindcare.core.auth import CurrentPsychologist
from mindcare.core.exceptions import PatientNotFound
from mindcare.schemas.account import PatientListResponse, PsychologistMeResponse
from mindcare.schemas.crisis import CrisisListResponse
from mindcare.schemas.invite import InviteCreateResponse
from mindcare.services.accounts import get_patient, list_patients
from mindcare.services.crises import count_active, list_for_psychologist
from mindcare.services.invites import generate_invite
from mindcare.store import KeyValueStore, get_store

router = APIRouter(prefix="/psychologist", tags=["psychologist"])


@router.post(
    "/invite",
    response_model=InviteCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invite(
    psychologist: CurrentPsychologist,
    store: KeyValueStore = Depends(get_store),
) -> InviteCreateResponse:
    """Generate a single-use invite code for a new patient."""
    invite = await generate_invite(store, psychologist.id)
    return InviteCreateResponse(code=invite.code)


@router.get("/me", response_model=PsychologistMeResponse)
async def get_me(psychologist: CurrentPsychologist) -> PsychologistMeResponse:
    return PsychologistMeResponse(psychologist=psychologist)


@router.get("/patients", response_model=PatientListResponse)
async def get_patients(
    psychologist: CurrentPsychologist,
    store: KeyValueStore = Depends(get_store),
) -> PatientListResponse:
    """List patients enrolled through this psychologist's invites."""
    patients = await list_patients(store, psychologist.id)
    return PatientListResponse(patients=patients, count=len(patients))


@router.get("/crises", response_model=CrisisListResponse)
async def get_crises(
    psychologist: CurrentPsychologist,
    store: KeyValueStore = Depends(get_store),
) -> CrisisListResponse:
    """List crises raised by this psychologist's patients."""
    crises = await list_for_psychologist(store, psychologist.id)
    return CrisisListResponse(
        crises=crises,
        count=len(crises),
        active_count=count_active(crises),
    )


@router.get("/patients/{patient_id}/crises", response_model=CrisisListResponse)
async def get_patient_crises(
    psychologist: CurrentPsychologist,
    patient_id: str = Path(..., min_length=1, max_length=64),
    store: KeyValueStore = Depends(get_store),
) -> CrisisListResponse:
    """Crises of one patient, for the patient detail view.

    Patients of other psychologists read as not found.
    """
    patient = await get_patient(store, patient_id)
    if patient is None or patient.psychologist_id != psychologist.id:
        raise PatientNotFound()

    crises = [
        crisis
        for crisis in await list_for_psychologist(store, psychologist.id)
        if crisis.patient_id == patient_id
    ]
    return CrisisListResponse(
        crises=crises,
        count=len(crises),
        active_count=count_active(crises),
    )
