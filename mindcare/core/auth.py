"""Authentication and role-checking dependencies.

Bearer credentials are resolved through the identity gateway; the account
record (patient or psychologist) is then loaded from the store by id.
"""

from typing import Annotated

from fastapi import Depends, Request

from mindcare.core.exceptions import (
    Forbidden,
    PatientNotFound,
    PsychologistNotFound,
    Unauthorized,
)
from mindcare.core.identity import Identity, IdentityGateway, get_identity_gateway
from mindcare.logging_config import get_logger
from mindcare.models.account import Patient, Psychologist, UserRole
from mindcare.services.accounts import get_account
from mindcare.store import KeyValueStore, get_store

logger = get_logger(__name__)

_NOT_FOUND = {
    UserRole.PATIENT: PatientNotFound,
    UserRole.PSYCHOLOGIST: PsychologistNotFound,
}


def extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_current_identity(
    request: Request,
    gateway: IdentityGateway = Depends(get_identity_gateway),
) -> Identity:
    """Resolve the caller from the Authorization header.

    Raises:
        Unauthorized: If the header is missing or the credential is invalid
    """
    token = extract_bearer_token(request)
    if token is None:
        raise Unauthorized("Not authenticated")
    return await gateway.verify(token)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


class RoleChecker:
    """Dependency that loads the caller's account and checks its role.

    Usage:
        @router.get("/psychologist/me")
        async def me(psychologist: CurrentPsychologist):
            ...
    """

    def __init__(self, role: UserRole):
        self.role = role

    async def __call__(
        self,
        request: Request,
        identity: CurrentIdentity,
        store: KeyValueStore = Depends(get_store),
    ) -> Patient | Psychologist:
        account = await get_account(store, identity.user_id)
        if account is None and identity.role == self.role.value:
            # Login exists but the profile write never landed
            raise _NOT_FOUND[self.role]()
        if account is None or account.role != self.role.value:
            logger.warning(
                "Unauthorized access attempt",
                user_id=identity.user_id,
                user_role=account.role if account else identity.role,
                required_role=self.role.value,
                path=request.url.path,
                method=request.method,
            )
            raise Forbidden()
        return account


require_psychologist = RoleChecker(UserRole.PSYCHOLOGIST)
require_patient = RoleChecker(UserRole.PATIENT)

# Type aliases for role-restricted endpoints
CurrentPsychologist = Annotated[Psychologist, Depends(require_psychologist)]
CurrentPatient = Annotated[Patient, Depends(require_patient)]
