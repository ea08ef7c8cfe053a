"""Tests for invite code generation, validation, and consumption."""

from unittest.mock import patch

import pytest

from mindcare.core.exceptions import InvalidInvite, StoreFailure, ValidationFailure
from mindcare.models.account import Patient, account_key, patient_index
from mindcare.models.invite import CODE_PATTERN, InviteCode, generate_code, invite_key
from mindcare.services.accounts import get_patient, list_patients
from mindcare.services.invites import (
    check_code_format,
    consume_invite,
    generate_invite,
    get_invite,
    validate_invite,
)
from mindcare.store import AppendLog


async def _seed_invite(store, code: str, psychologist_id: str) -> None:
    invite = InviteCode(code=code, psychologist_id=psychologist_id)
    await store.set(invite_key(code), invite.to_document())


class TestGenerateCode:
    def test_code_shape(self):
        for _ in range(50):
            assert CODE_PATTERN.match(generate_code())

    def test_check_code_format_normalizes(self):
        assert check_code_format("  ab12cd ") == "AB12CD"

    @pytest.mark.parametrize("code", ["", "ABC", "ABCDEFG", "AB-12C", "AB 12C"])
    def test_check_code_format_rejects_malformed(self, code):
        with pytest.raises(ValidationFailure):
            check_code_format(code)


class TestGenerateInvite:
    async def test_stores_unused_invite(self, store, psychologist):
        invite = await generate_invite(store, psychologist.id)

        stored = await get_invite(store, invite.code)
        assert stored is not None
        assert stored.psychologist_id == psychologist.id
        assert stored.used is False
        assert stored.patient_id is None

    async def test_collision_does_not_overwrite(self, store, psychologist):
        """An existing code is never reassigned to another psychologist."""
        await _seed_invite(store, "AAAAAA", "someone-else")

        with patch("mindcare.services.invites.generate_code", return_value="AAAAAA"):
            with pytest.raises(StoreFailure):
                await generate_invite(store, psychologist.id)

        stored = await get_invite(store, "AAAAAA")
        assert stored.psychologist_id == "someone-else"


class TestValidateInvite:
    async def test_unused_code_is_valid(self, store, psychologist):
        invite = await generate_invite(store, psychologist.id)
        assert await validate_invite(store, invite.code) is True

    async def test_lowercase_input_matches(self, store, psychologist):
        invite = await generate_invite(store, psychologist.id)
        assert await validate_invite(store, invite.code.lower()) is True

    async def test_unknown_code_is_invalid(self, store):
        assert await validate_invite(store, "ZZZZZZ") is False

    async def test_validation_does_not_consume(self, store, psychologist):
        invite = await generate_invite(store, psychologist.id)
        await validate_invite(store, invite.code)
        await validate_invite(store, invite.code)
        assert (await get_invite(store, invite.code)).used is False


class TestConsumeInvite:
    async def test_happy_path(self, store, gateway, psychologist):
        await _seed_invite(store, "AB12CD", psychologist.id)

        enrollment = await consume_invite(
            store, gateway, "AB12CD", name="Ana", age=28, phone="11999990000"
        )

        patient = enrollment.patient
        assert patient.psychologist_id == psychologist.id
        assert patient.name == "Ana"
        assert patient.age == 28
        assert enrollment.access_token
        assert enrollment.email.startswith("patient_")
        assert len(enrollment.password) == 16

        invite = await get_invite(store, "AB12CD")
        assert invite.used is True
        assert invite.patient_id == patient.id
        assert invite.used_at is not None

        assert await validate_invite(store, "AB12CD") is False
        patients = await list_patients(store, psychologist.id)
        assert [p.id for p in patients] == [patient.id]

    async def test_password_is_not_stored_on_patient(self, store, gateway, psychologist):
        await _seed_invite(store, "AB12CD", psychologist.id)
        enrollment = await consume_invite(
            store, gateway, "AB12CD", name="Ana", age=28, phone="11999990000"
        )

        document = await store.get(account_key(enrollment.patient.id))
        assert enrollment.password not in str(document)

    async def test_generated_login_signs_in(self, store, gateway, psychologist):
        await _seed_invite(store, "AB12CD", psychologist.id)
        enrollment = await consume_invite(
            store, gateway, "AB12CD", name="Ana", age=28, phone="11999990000"
        )

        identity, token = await gateway.sign_in(enrollment.email, enrollment.password)
        assert identity.user_id == enrollment.patient.id
        assert token

    async def test_second_use_is_rejected(self, store, gateway, psychologist):
        """A code binds at most one patient."""
        invite = await generate_invite(store, psychologist.id)
        first = await consume_invite(
            store, gateway, invite.code, name="Ana", age=28, phone="1"
        )

        with pytest.raises(InvalidInvite):
            await consume_invite(
                store, gateway, invite.code, name="Bruno", age=30, phone="2"
            )

        patients = await list_patients(store, psychologist.id)
        assert [p.id for p in patients] == [first.patient.id]

    async def test_unknown_code_is_rejected(self, store, gateway):
        with pytest.raises(InvalidInvite):
            await consume_invite(store, gateway, "ZZZZZZ", name="Ana", age=28, phone="1")

    async def test_malformed_code_is_validation_failure(self, store, gateway):
        with pytest.raises(ValidationFailure):
            await consume_invite(store, gateway, "nope", name="Ana", age=28, phone="1")

    async def test_each_patient_binds_to_inviting_psychologist(
        self, store, gateway, psychologist
    ):
        await _seed_invite(store, "AAAAA1", psychologist.id)
        await _seed_invite(store, "BBBBB2", "other-psychologist")

        mine = await consume_invite(store, gateway, "AAAAA1", name="A", age=20, phone="1")
        theirs = await consume_invite(store, gateway, "BBBBB2", name="B", age=21, phone="2")

        assert mine.patient.psychologist_id == psychologist.id
        assert theirs.patient.psychologist_id == "other-psychologist"
        assert [p.id for p in await list_patients(store, psychologist.id)] == [
            mine.patient.id
        ]

    async def test_auto_sign_in_failure_still_enrolls(self, store, gateway, psychologist):
        await _seed_invite(store, "AB12CD", psychologist.id)

        with patch.object(gateway, "sign_in", side_effect=RuntimeError("provider down")):
            enrollment = await consume_invite(
                store, gateway, "AB12CD", name="Ana", age=28, phone="1"
            )

        assert enrollment.access_token is None
        assert await get_patient(store, enrollment.patient.id) is not None


class TestListPatients:
    async def test_enrollment_order(self, store, gateway, psychologist):
        ids = []
        for name in ["Ana", "Bruno", "Carla"]:
            invite = await generate_invite(store, psychologist.id)
            enrollment = await consume_invite(
                store, gateway, invite.code, name=name, age=30, phone="1"
            )
            ids.append(enrollment.patient.id)

        assert [p.id for p in await list_patients(store, psychologist.id)] == ids

    async def test_no_patients(self, store, psychologist):
        assert await list_patients(store, psychologist.id) == []

    async def test_dangling_and_foreign_entries_are_skipped(
        self, store, psychologist, patient
    ):
        log = AppendLog(store, patient_index(psychologist.id))
        await log.append("ghost")
        await log.append(psychologist.id)

        patients = await list_patients(store, psychologist.id)
        assert [p.id for p in patients] == [patient.id]
        assert all(isinstance(p, Patient) for p in patients)
