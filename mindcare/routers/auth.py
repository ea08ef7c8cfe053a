"""Authentication router.

Public endpoints: psychologist signup, invite-based patient signup, and
sign-in for both roles.
"""

from fastapi import APIRouter, Depends, Request, status

from mindcare.core.identity import IdentityGateway, get_identity_gateway
from mindcare.logging_config import get_logger
from mindcare.middleware.rate_limit import LOGIN_LIMIT, SIGNUP_LIMIT, limiter
from mindcare.models.account import UserRole
from mindcare.schemas.auth import (
    Credentials,
    LoginRequest,
    LoginResponse,
    PatientSignupRequest,
    PatientSignupResponse,
    PsychologistSignupRequest,
    SignupResponse,
)
from mindcare.schemas.base import ErrorResponse
from mindcare.services.accounts import create_psychologist
from mindcare.services.invites import consume_invite
from mindcare.store import KeyValueStore, get_store

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/psychologist/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"model": ErrorResponse, "description": "Invalid request"},
    },
)
@limiter.limit(SIGNUP_LIMIT)
async def psychologist_signup(
    body: PsychologistSignupRequest,
    request: Request,
    store: KeyValueStore = Depends(get_store),
    gateway: IdentityGateway = Depends(get_identity_gateway),
) -> SignupResponse:
    """Register a psychologist account."""
    psychologist = await create_psychologist(
        store,
        gateway,
        email=body.email,
        password=body.password,
        name=body.name,
        crp=body.crp,
    )
    return SignupResponse(user_id=psychologist.id)


@router.post(
    "/patient/signup",
    response_model=PatientSignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or used invite code"},
        422: {"model": ErrorResponse, "description": "Invalid request"},
    },
)
@limiter.limit(SIGNUP_LIMIT)
async def patient_signup(
    body: PatientSignupRequest,
    request: Request,
    store: KeyValueStore = Depends(get_store),
    gateway: IdentityGateway = Depends(get_identity_gateway),
) -> PatientSignupResponse:
    """Sign a patient up with an invite code.

    The patient gets a generated login, returned once in ``credentials``,
    and an access token so the client can continue without a sign-in step.
    """
    enrollment = await consume_invite(
        store,
        gateway,
        code=body.invite_code,
        name=body.name,
        age=body.age,
        phone=body.phone,
    )
    return PatientSignupResponse(
        user_id=enrollment.patient.id,
        access_token=enrollment.access_token,
        credentials=Credentials(email=enrollment.email, password=enrollment.password),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
@limiter.limit(LOGIN_LIMIT)
async def login(
    body: LoginRequest,
    request: Request,
    gateway: IdentityGateway = Depends(get_identity_gateway),
) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    client_ip = request.client.host if request.client else "unknown"
    identity, token = await gateway.sign_in(body.email, body.password)

    logger.info(
        "User signed in",
        user_id=identity.user_id,
        role=identity.role,
        client_ip=client_ip,
    )
    return LoginResponse(
        access_token=token,
        user_id=identity.user_id,
        role=UserRole(identity.role),
    )
