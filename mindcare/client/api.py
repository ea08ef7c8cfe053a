"""Async HTTP client for the MindCare API.

One method per endpoint. Non-2xx responses raise ``ApiError`` carrying the
server's ``{"error"}`` message; connection problems raise
``MindCareClientError``.
"""

from typing import Any

import httpx

from mindcare.config import settings
from mindcare.logging_config import get_logger
from mindcare.models.account import Patient, Psychologist
from mindcare.models.crisis import Crisis, CrisisStatus
from mindcare.models.message import Message
from mindcare.schemas.auth import PatientSignupResponse

logger = get_logger(__name__)


class MindCareClientError(Exception):
    """Error talking to the MindCare API."""


class ApiError(MindCareClientError):
    """The API answered with an error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class MindCareClient:
    """Thin async wrapper over the REST surface.

    Usage:
        async with MindCareClient(access_token=token) as api:
            crisis = await api.create_crisis()
    """

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_token = access_token
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.client_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "MindCareClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method, path, json=json, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("API request failed", method=method, path=path, error=str(exc))
            raise MindCareClientError(f"Request to {path} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(response.status_code, message or response.reason_phrase)

        return data

    # Auth

    async def psychologist_signup(
        self, email: str, password: str, name: str, crp: str
    ) -> str:
        data = await self._request(
            "POST",
            "/auth/psychologist/signup",
            json={"email": email, "password": password, "name": name, "crp": crp},
        )
        return data["userId"]

    async def patient_signup(
        self, invite_code: str, name: str, age: int, phone: str
    ) -> PatientSignupResponse:
        """Sign up with an invite; adopts the returned access token."""
        data = await self._request(
            "POST",
            "/auth/patient/signup",
            json={"inviteCode": invite_code, "name": name, "age": age, "phone": phone},
        )
        signup = PatientSignupResponse.model_validate(data)
        if signup.access_token:
            self.access_token = signup.access_token
        return signup

    async def login(self, email: str, password: str) -> str:
        """Sign in and keep the token for later calls."""
        data = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        self.access_token = data["accessToken"]
        return data["userId"]

    # Psychologist

    async def generate_invite_code(self) -> str:
        data = await self._request("POST", "/psychologist/invite")
        return data["code"]

    async def get_patients(self) -> list[Patient]:
        data = await self._request("GET", "/psychologist/patients")
        return [Patient.model_validate(p) for p in data["patients"]]

    async def get_psychologist(self) -> Psychologist:
        data = await self._request("GET", "/psychologist/me")
        return Psychologist.model_validate(data["psychologist"])

    async def get_psychologist_crises(self) -> list[Crisis]:
        data = await self._request("GET", "/psychologist/crises")
        return [Crisis.model_validate(c) for c in data["crises"]]

    # Patient

    async def validate_invite_code(self, code: str) -> bool:
        """True if the code can be used; malformed codes count as invalid."""
        try:
            data = await self._request(
                "POST", "/patient/validate-invite", json={"code": code}
            )
        except ApiError as exc:
            if exc.status_code == 422:
                return False
            raise
        return bool(data["valid"])

    async def get_patient(self) -> tuple[Patient, Psychologist | None]:
        data = await self._request("GET", "/patient/me")
        psychologist = data.get("psychologist")
        return (
            Patient.model_validate(data["patient"]),
            Psychologist.model_validate(psychologist) if psychologist else None,
        )

    async def get_patient_crises(self) -> list[Crisis]:
        data = await self._request("GET", "/patient/crises")
        return [Crisis.model_validate(c) for c in data["crises"]]

    # Crisis

    async def create_crisis(self) -> Crisis:
        data = await self._request("POST", "/crisis/create")
        return Crisis.model_validate(data["crisis"])

    async def update_crisis_status(
        self,
        crisis_id: str,
        status: CrisisStatus | str,
        notes: str | None = None,
    ) -> Crisis:
        body: dict[str, Any] = {"status": CrisisStatus(status).value}
        if notes is not None:
            body["notes"] = notes
        data = await self._request("PUT", f"/crisis/{crisis_id}/status", json=body)
        return Crisis.model_validate(data["crisis"])

    # Chat

    async def send_message(self, text: str, recipient_id: str) -> Message:
        data = await self._request(
            "POST", "/chat/message", json={"text": text, "recipientId": recipient_id}
        )
        return Message.model_validate(data["message"])

    async def get_messages(self, recipient_id: str) -> list[Message]:
        data = await self._request("GET", f"/chat/messages/{recipient_id}")
        return [Message.model_validate(m) for m in data["messages"]]
