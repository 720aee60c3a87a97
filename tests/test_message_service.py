import uuid
from datetime import timedelta

import pytest

from telehealth.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from telehealth.models import AppointmentStatus, ConsultationType
from telehealth.services.message_service import MAX_MESSAGE_LENGTH, MessageService

from conftest import NOW, RecordingNotifier


@pytest.fixture
def messages(db, notifier, clock, policy) -> MessageService:
    return MessageService(db, notifier, clock, policy)


@pytest.fixture
async def text_appointment(doctor, patient, make_slot, make_appointment):
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    return await make_appointment(patient, slot, consultation_type=ConsultationType.TEXT)


async def test_patient_message_goes_to_doctor(messages, notifier, doctor, patient, actor_of, text_appointment) -> None:
    message = await messages.send_message(actor_of(patient), text_appointment.id, "  Hello doctor  ")

    assert message.content == "Hello doctor"
    assert message.sender_id == patient.id
    assert message.receiver_id == doctor.id
    assert message.sent_at == NOW
    assert notifier.calls[0]["recipient_id"] == doctor.id
    assert notifier.calls[0]["notification_type"] == "MESSAGE"


async def test_messages_are_listed_in_send_order(messages, clock, doctor, patient, actor_of, text_appointment) -> None:
    await messages.send_message(actor_of(patient), text_appointment.id, "first")
    clock.advance(seconds=30)
    await messages.send_message(actor_of(doctor), text_appointment.id, "second")

    listed = await messages.list_messages(actor_of(doctor), text_appointment.id)

    assert [m.content for m in listed] == ["first", "second"]
    assert listed[1].receiver_id == patient.id


async def test_empty_and_oversized_messages_are_rejected(messages, patient, actor_of, text_appointment) -> None:
    with pytest.raises(ValidationError):
        await messages.send_message(actor_of(patient), text_appointment.id, "   ")
    with pytest.raises(ValidationError):
        await messages.send_message(actor_of(patient), text_appointment.id, "x" * (MAX_MESSAGE_LENGTH + 1))


async def test_non_party_cannot_send(messages, other_patient, actor_of, text_appointment) -> None:
    with pytest.raises(ForbiddenError):
        await messages.send_message(actor_of(other_patient), text_appointment.id, "hi")


async def test_messages_only_for_text_consultations(messages, doctor, patient, actor_of, make_slot, make_appointment) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=2))
    video = await make_appointment(patient, slot, consultation_type=ConsultationType.VIDEO)

    with pytest.raises(InvalidStateError):
        await messages.send_message(actor_of(patient), video.id, "hi")


async def test_messages_require_confirmed_appointment(messages, doctor, patient, actor_of, make_slot, make_appointment) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=2))
    pending = await make_appointment(
        patient, slot, status=AppointmentStatus.PENDING, consultation_type=ConsultationType.TEXT
    )

    with pytest.raises(InvalidStateError):
        await messages.send_message(actor_of(patient), pending.id, "hi")


async def test_send_to_missing_appointment(messages, patient, actor_of) -> None:
    with pytest.raises(NotFoundError):
        await messages.send_message(actor_of(patient), uuid.uuid4(), "hi")


async def test_only_receiver_marks_read_and_only_once(messages, clock, doctor, patient, actor_of, text_appointment) -> None:
    message = await messages.send_message(actor_of(patient), text_appointment.id, "hi")

    with pytest.raises(ForbiddenError):
        await messages.mark_read(actor_of(patient), message.id)

    read = await messages.mark_read(actor_of(doctor), message.id)
    first_read_at = read.read_at
    clock.advance(minutes=5)
    again = await messages.mark_read(actor_of(doctor), message.id)

    assert first_read_at == NOW
    assert again.read_at == first_read_at


async def test_notifier_failure_keeps_message(db, clock, policy, patient, actor_of, text_appointment) -> None:
    service = MessageService(db, RecordingNotifier(fail=True), clock, policy)

    message = await service.send_message(actor_of(patient), text_appointment.id, "still delivered")

    assert (await service.list_messages(actor_of(patient), text_appointment.id))[0].id == message.id
