import uuid

import pytest

from telehealth.exceptions import NotFoundError
from telehealth.models import NotificationStatus
from telehealth.services.notification_service import NotificationDispatcher, NotificationService

from conftest import NOW


class RecordingSender:
    def __init__(self):
        self.sent = []

    async def send(self, push_token, title, body, data):
        self.sent.append((push_token, title, data))


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def dispatcher(session_factory, sender) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, sender)


async def test_notify_persists_and_marks_sent(db, dispatcher, sender, patient) -> None:
    await dispatcher.notify(patient.id, "Appointment Confirmed", "See you soon", {"appointment_id": "abc"})

    notifications = await NotificationService(db).list_notifications(patient.id)

    assert len(notifications) == 1
    assert notifications[0].status == NotificationStatus.SENT.value
    assert notifications[0].payload == {"appointment_id": "abc"}
    push_token, title, data = sender.sent[0]
    assert push_token == "expo-alice-token"
    assert title == "Appointment Confirmed"
    assert data["notification_id"] == str(notifications[0].id)


async def test_notify_without_push_token_still_records(db, dispatcher, sender, other_patient) -> None:
    await dispatcher.notify(other_patient.id, "New Message", "hi", notification_type="MESSAGE")

    notifications = await NotificationService(db).list_notifications(other_patient.id)

    assert notifications[0].notification_type == "MESSAGE"
    assert sender.sent[0][0] is None


async def test_unread_filter_and_mark_read(db, dispatcher, clock, patient) -> None:
    await dispatcher.notify(patient.id, "one", "first")
    await dispatcher.notify(patient.id, "two", "second")
    service = NotificationService(db, clock)
    target, other = await service.list_notifications(patient.id)

    read = await service.mark_read(patient.id, target.id)
    clock.advance(minutes=1)
    again = await service.mark_read(patient.id, target.id)

    assert read.read_at == NOW
    assert again.read_at == NOW
    unread = await service.list_notifications(patient.id, unread_only=True)
    assert [n.id for n in unread] == [other.id]


async def test_mark_read_of_someone_elses_notification_is_not_found(db, dispatcher, patient, other_patient) -> None:
    await dispatcher.notify(patient.id, "one", "first")
    service = NotificationService(db)
    notification = (await service.list_notifications(patient.id))[0]

    with pytest.raises(NotFoundError):
        await service.mark_read(other_patient.id, notification.id)
    with pytest.raises(NotFoundError):
        await service.mark_read(patient.id, uuid.uuid4())


class BrokenSender:
    async def send(self, push_token, title, body, data):
        raise RuntimeError("push gateway unavailable")


async def test_failed_delivery_keeps_pending_record(db, session_factory, patient) -> None:
    dispatcher = NotificationDispatcher(session_factory, BrokenSender())

    await dispatcher.notify(patient.id, "Appointment Confirmed", "See you soon", {"appointment_id": "abc"})

    notifications = await NotificationService(db).list_notifications(patient.id)
    assert len(notifications) == 1
    assert notifications[0].status == NotificationStatus.PENDING.value
    assert notifications[0].payload == {"appointment_id": "abc"}
