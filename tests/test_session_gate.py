import uuid
from datetime import timedelta

import pytest

from telehealth.exceptions import (
    ConfigurationError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    NotStartedError,
    WindowExpiredError,
)
from telehealth.models import AppointmentStatus, AppointmentType, ConsultationType
from telehealth.schemas.appointment import AppointmentInitiate
from telehealth.services.appointment_service import AppointmentService
from telehealth.services.media_session import PUBLISHER, SUBSCRIBER
from telehealth.services.session_gate import SessionGate

from conftest import NOW


@pytest.fixture
def gate(db, media, clock, policy) -> SessionGate:
    return SessionGate(db, media, clock, policy)


async def test_video_consultation_end_to_end(db, notifier, media, clock, policy, doctor, patient, actor_of, make_slot) -> None:
    slot = await make_slot(doctor, NOW + timedelta(days=2))
    service = AppointmentService(db, notifier, clock, policy)
    appointment = await service.initiate(
        actor_of(patient),
        AppointmentInitiate(
            doctor_id=doctor.id,
            availability_id=slot.id,
            type=AppointmentType.VIRTUAL,
            consultation_type=ConsultationType.VIDEO,
        ),
    )
    await service.confirm(actor_of(doctor), appointment.id)

    clock.now = slot.start_time + timedelta(minutes=1)
    joined = await SessionGate(db, media, clock, policy).join(actor_of(patient), appointment.id)

    assert joined.session_id == appointment.session_id
    assert joined.token == f"token:{appointment.session_id}:{patient.id}:{PUBLISHER}"
    assert joined.livekit_url == media.url
    assert joined.expires_at == clock.now + timedelta(seconds=policy.session_token_ttl_seconds)
    assert media.calls[0]["ttl_seconds"] == policy.session_token_ttl_seconds


async def test_join_window_boundaries_are_inclusive(gate, clock, doctor, patient, actor_of, make_slot, make_appointment) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot, duration=30)

    clock.now = slot.start_time
    assert (await gate.join(actor_of(patient), appointment.id)).token

    clock.now = slot.start_time + timedelta(minutes=30)
    assert (await gate.join(actor_of(doctor), appointment.id)).token


async def test_join_before_start_is_not_started(gate, doctor, patient, actor_of, make_slot, make_appointment) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot)

    with pytest.raises(NotStartedError) as exc_info:
        await gate.join(actor_of(patient), appointment.id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.details["starts_at"] == slot.start_time.isoformat()


async def test_join_after_window_is_expired(gate, clock, doctor, patient, actor_of, make_slot, make_appointment) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot, duration=45)
    clock.now = slot.start_time + timedelta(minutes=45, seconds=1)

    with pytest.raises(WindowExpiredError):
        await gate.join(actor_of(patient), appointment.id)


async def test_join_pending_appointment_is_invalid_state(
    gate, clock, doctor, patient, actor_of, make_slot, make_appointment
) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot, status=AppointmentStatus.PENDING)
    clock.now = slot.start_time

    with pytest.raises(InvalidStateError):
        await gate.join(actor_of(patient), appointment.id)


async def test_join_by_stranger_is_forbidden(
    gate, clock, doctor, patient, other_patient, actor_of, make_slot, make_appointment
) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot)
    clock.now = slot.start_time

    with pytest.raises(ForbiddenError):
        await gate.join(actor_of(other_patient), appointment.id)


async def test_join_missing_appointment(gate, patient, actor_of) -> None:
    with pytest.raises(NotFoundError):
        await gate.join(actor_of(patient), uuid.uuid4())


async def test_admin_joins_as_subscriber(
    gate, media, clock, doctor, patient, admin, actor_of, make_slot, make_appointment
) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot, consultation_type=ConsultationType.AUDIO)
    clock.now = slot.start_time

    await gate.join(actor_of(admin), appointment.id)

    assert media.calls[0]["role"] == SUBSCRIBER
    assert media.calls[0]["consultation_type"] == ConsultationType.AUDIO.value


async def test_text_consultation_returns_stored_session_id(
    gate, media, clock, doctor, patient, actor_of, make_slot, make_appointment
) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot, consultation_type=ConsultationType.TEXT)
    clock.now = slot.start_time + timedelta(minutes=5)

    first = await gate.join(actor_of(patient), appointment.id)
    second = await gate.join(actor_of(doctor), appointment.id)

    assert first.session_id == second.session_id == appointment.session_id
    assert first.token is None
    assert media.calls == []


async def test_in_person_join_is_an_acknowledgement(
    gate, media, clock, doctor, patient, actor_of, make_slot, make_appointment
) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot, type=AppointmentType.IN_PERSON)
    clock.now = slot.start_time + timedelta(minutes=10)

    joined = await gate.join(actor_of(patient), appointment.id)

    assert joined.type == AppointmentType.IN_PERSON
    assert joined.session_id is None
    assert joined.token is None
    assert media.calls == []


async def test_media_join_without_provider_is_configuration_error(
    db, clock, policy, doctor, patient, actor_of, make_slot, make_appointment
) -> None:
    slot = await make_slot(doctor, NOW + timedelta(hours=1))
    appointment = await make_appointment(patient, slot)
    clock.now = slot.start_time

    with pytest.raises(ConfigurationError) as exc_info:
        await SessionGate(db, None, clock, policy).join(actor_of(patient), appointment.id)

    assert exc_info.value.status_code == 503
