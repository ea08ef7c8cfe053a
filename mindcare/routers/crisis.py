"""Crisis router: raising a crisis and moving it through its lifecycle."""

from fastapi import APIRouter, Depends, Path, Request, status

from mindcare.core.auth import CurrentIdentity, CurrentPsychologist
from mindcare.core.exceptions import CrisisNotFound, Forbidden
from mindcare.logging_config import get_logger
from mindcare.schemas.base import ErrorResponse
from mindcare.schemas.crisis import CrisisResponse, CrisisStatusUpdateRequest
from mindcare.services.crises import create_crisis, get_crisis, set_crisis_status
from mindcare.store import KeyValueStore, get_store

logger = get_logger(__name__)

router = APIRouter(prefix="/crisis", tags=["crisis"])


@router.post(
    "/create",
    response_model=CrisisResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Caller is not a patient"}},
)
async def raise_crisis(
    identity: CurrentIdentity,
    store: KeyValueStore = Depends(get_store),
) -> CrisisResponse:
    """Raise a crisis alert for the calling patient.

    The crisis starts as ``pending`` and shows up immediately in the
    psychologist's crisis list.
    """
    crisis = await create_crisis(store, identity.user_id)
    return CrisisResponse(crisis=crisis)


@router.put(
    "/{crisis_id}/status",
    response_model=CrisisResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Crisis belongs to someone else"},
        404: {"model": ErrorResponse, "description": "Crisis not found"},
    },
)
async def update_crisis_status(
    body: CrisisStatusUpdateRequest,
    request: Request,
    psychologist: CurrentPsychologist,
    crisis_id: str = Path(..., min_length=1, max_length=64),
    store: KeyValueStore = Depends(get_store),
) -> CrisisResponse:
    """Change a crisis status, optionally attaching notes.

    Only the psychologist the crisis was raised to may change it. Omitted
    notes keep whatever was stored before.
    """
    crisis = await get_crisis(store, crisis_id)
    if crisis is None:
        raise CrisisNotFound()
    if crisis.psychologist_id != psychologist.id:
        logger.warning(
            "Crisis update by non-owner",
            crisis_id=crisis_id,
            psychologist_id=psychologist.id,
            path=request.url.path,
        )
        raise Forbidden()

    updated = await set_crisis_status(store, crisis_id, body.status, body.notes)
    return CrisisResponse(crisis=updated)
