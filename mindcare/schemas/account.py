"""Account read schemas for psychologists and patients."""

from mindcare.models.account import Patient, Psychologist
from mindcare.schemas.base import ApiModel


class PsychologistMeResponse(ApiModel):
    psychologist: Psychologist


class PatientListResponse(ApiModel):
    patients: list[Patient]
    count: int


class PatientMeResponse(ApiModel):
    """The patient's own record plus their psychologist, if still on file."""

    patient: Patient
    psychologist: Psychologist | None
