"""Tests for the conversation engine."""

import asyncio

import pytest

from mindcare.core.exceptions import SenderNotFound, ValidationFailure
from mindcare.models.account import UserRole
from mindcare.models.message import MAX_MESSAGE_LENGTH, conversation_key_of
from mindcare.services.conversations import append_message, clean_text, history


class TestConversationKey:
    def test_symmetric(self):
        assert conversation_key_of("a", "b") == conversation_key_of("b", "a")

    def test_sorted_join(self):
        assert conversation_key_of("zeta", "alpha") == "alpha:zeta"


class TestCleanText:
    def test_strips(self):
        assert clean_text("  hi  ") == "hi"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_rejects_blank(self, text):
        with pytest.raises(ValidationFailure):
            clean_text(text)

    def test_rejects_too_long(self):
        with pytest.raises(ValidationFailure):
            clean_text("x" * (MAX_MESSAGE_LENGTH + 1))


class TestAppendMessage:
    async def test_sender_fields_come_from_account(self, store, patient, psychologist):
        message = await append_message(store, patient.id, psychologist.id, "Oi doutora")

        assert message.sender_id == patient.id
        assert message.sender_name == patient.name
        assert message.sender_type == UserRole.PATIENT
        assert message.recipient_id == psychologist.id
        assert message.text == "Oi doutora"

    async def test_visible_from_both_sides(self, store, patient, psychologist):
        sent = await append_message(store, psychologist.id, patient.id, "Como está?")

        from_patient = await history(store, patient.id, psychologist.id)
        from_psychologist = await history(store, psychologist.id, patient.id)
        assert [m.id for m in from_patient] == [sent.id]
        assert [m.id for m in from_psychologist] == [sent.id]

    async def test_history_is_send_order(self, store, patient, psychologist):
        texts = ["one", "two", "three", "four"]
        senders = [patient.id, psychologist.id, patient.id, psychologist.id]
        for sender, text in zip(senders, texts):
            recipient = psychologist.id if sender == patient.id else patient.id
            await append_message(store, sender, recipient, text)

        assert [m.text for m in await history(store, patient.id, psychologist.id)] == texts

    async def test_concurrent_sends_are_all_kept(self, store, patient, psychologist):
        """Simultaneous messages from both sides never drop one another."""
        sends = [
            append_message(store, patient.id, psychologist.id, f"p{n}") for n in range(10)
        ] + [
            append_message(store, psychologist.id, patient.id, f"d{n}") for n in range(10)
        ]
        sent = await asyncio.gather(*sends)

        thread = await history(store, patient.id, psychologist.id)
        assert len(thread) == 20
        assert {m.id for m in thread} == {m.id for m in sent}

    async def test_unknown_sender(self, store, psychologist):
        with pytest.raises(SenderNotFound):
            await append_message(store, "ghost", psychologist.id, "hello")

    async def test_self_message_rejected(self, store, patient):
        with pytest.raises(ValidationFailure):
            await append_message(store, patient.id, patient.id, "hello")

    async def test_separate_threads_do_not_mix(self, store, gateway, psychologist, patient):
        await append_message(store, patient.id, psychologist.id, "to doctor")
        await append_message(store, patient.id, "someone-else", "elsewhere")

        assert [m.text for m in await history(store, patient.id, psychologist.id)] == [
            "to doctor"
        ]

    async def test_empty_history(self, store, patient, psychologist):
        assert await history(store, patient.id, psychologist.id) == []
