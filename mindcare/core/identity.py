"""Identity gateway.

The rest of the application only needs three things from an identity
provider: create a user, sign a user in, and turn a bearer credential into
a stable identity. ``IdentityGateway`` is that contract; routers receive an
implementation through the ``get_identity_gateway`` dependency.

``LocalIdentityGateway`` keeps identities in the key-value store with
bcrypt password hashes and issues JWT access tokens. A hosted provider can
replace it without touching the services.
"""

import uuid
from dataclasses import dataclass
from typing import Protocol

from fastapi import Depends

from mindcare.core.exceptions import AccountExists, Unauthorized
from mindcare.core.security import (
    TokenData,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from mindcare.logging_config import get_logger
from mindcare.store import KeyValueStore, get_store

logger = get_logger(__name__)

_EMAIL_PREFIX = "identity:email"
_ID_PREFIX = "identity:id"


@dataclass(frozen=True)
class Identity:
    """A verified user."""

    user_id: str
    email: str
    role: str


class IdentityGateway(Protocol):
    async def create_user(self, email: str, password: str, role: str) -> Identity:
        """Register a login. Raises AccountExists if the email is taken."""
        ...

    async def sign_in(self, email: str, password: str) -> tuple[Identity, str]:
        """Check credentials and return the identity with an access token.

        Raises Unauthorized on bad credentials.
        """
        ...

    async def verify(self, credential: str) -> Identity:
        """Resolve a bearer credential. Raises Unauthorized."""
        ...


class LocalIdentityGateway:
    """Store-backed identity provider."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def create_user(self, email: str, password: str, role: str) -> Identity:
        email = email.strip().lower()
        identity = Identity(user_id=str(uuid.uuid4()), email=email, role=role)
        document = {
            "user_id": identity.user_id,
            "email": email,
            "role": role,
            "password_hash": hash_password(password),
        }

        # SET NX on the email key is the uniqueness check
        created = await self.store.set(
            f"{_EMAIL_PREFIX}:{email}", document, only_if_absent=True
        )
        if not created:
            logger.warning("Signup attempt with existing email", role=role)
            raise AccountExists()

        await self.store.set(f"{_ID_PREFIX}:{identity.user_id}", document)
        logger.info("Identity created", user_id=identity.user_id, role=role)
        return identity

    async def sign_in(self, email: str, password: str) -> tuple[Identity, str]:
        document = await self.store.get(f"{_EMAIL_PREFIX}:{email.strip().lower()}")
        if document is None or not verify_password(password, document["password_hash"]):
            raise Unauthorized("Invalid email or password")

        identity = Identity(
            user_id=document["user_id"], email=document["email"], role=document["role"]
        )
        return identity, create_access_token(identity.user_id, identity.role)

    async def verify(self, credential: str) -> Identity:
        payload = decode_access_token(credential)
        if payload is None:
            raise Unauthorized()

        try:
            token_data = TokenData(payload)
        except (KeyError, ValueError):
            raise Unauthorized()

        document = await self.store.get(f"{_ID_PREFIX}:{token_data.user_id}")
        if document is None:
            raise Unauthorized()

        return Identity(
            user_id=document["user_id"], email=document["email"], role=document["role"]
        )


def get_identity_gateway(
    store: KeyValueStore = Depends(get_store),
) -> IdentityGateway:
    """FastAPI dependency returning the configured identity gateway."""
    return LocalIdentityGateway(store)
