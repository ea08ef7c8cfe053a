"""Patient router.

Invite validation (public, before signup), the patient's profile, and
their crisis history.
"""

from fastapi import APIRouter, Depends, Request

from mindcare.core.auth import CurrentPatient
from mindcare.middleware.rate_limit import VALIDATE_INVITE_LIMIT, limiter
from mindcare.schemas.account import PatientMeResponse
from mindcare.schemas.crisis import CrisisListResponse
from mindcare.schemas.invite import ValidateInviteRequest, ValidateInviteResponse
from mindcare.services.accounts import get_psychologist
from mindcare.services.crises import count_active, list_for_patient
from mindcare.services.invites import check_code_format, validate_invite
from mindcare.store import KeyValueStore, get_store

router = APIRouter(prefix="/patient", tags=["patient"])


@router.post("/validate-invite", response_model=ValidateInviteResponse)
@limiter.limit(VALIDATE_INVITE_LIMIT)
async def validate_invite_code(
    body: ValidateInviteRequest,
    request: Request,
    store: KeyValueStore = Depends(get_store),
) -> ValidateInviteResponse:
    """Check an invite code before the signup form is shown.

    No authentication required. Unknown and used codes both answer
    ``valid: false``; malformed codes are rejected with 422.
    """
    code = check_code_format(body.code)
    return ValidateInviteResponse(valid=await validate_invite(store, code))


@router.get("/me", response_model=PatientMeResponse)
async def get_me(
    patient: CurrentPatient,
    store: KeyValueStore = Depends(get_store),
) -> PatientMeResponse:
    psychologist = await get_psychologist(store, patient.psychologist_id)
    return PatientMeResponse(patient=patient, psychologist=psychologist)


@router.get("/crises", response_model=CrisisListResponse)
async def get_crises(
    patient: CurrentPatient,
    store: KeyValueStore = Depends(get_store),
) -> CrisisListResponse:
    crises = await list_for_patient(store, patient.id)
    return CrisisListResponse(
        crises=crises,
        count=len(crises),
        active_count=count_active(crises),
    )
