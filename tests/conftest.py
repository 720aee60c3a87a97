import os
from datetime import datetime, timedelta

import pytest

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOGFIRE_TOKEN"] = ""
os.environ["LIVEKIT_API_KEY"] = ""
os.environ["LIVEKIT_API_SECRET"] = ""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from telehealth.database import Base  # noqa: E402
from telehealth.models import (  # noqa: E402
    Appointment,
    AppointmentStatus,
    AppointmentType,
    Availability,
    AvailabilityStatus,
    ConsultationType,
    User,
    UserRole,
)
from telehealth.services.policy import Actor, WorkflowPolicy  # noqa: E402

NOW = datetime(2030, 1, 7, 9, 0)


class FixedClock:
    """Clock pinned to a settable instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    async def notify(self, recipient_id, title, body, metadata=None, notification_type="APPOINTMENT"):
        self.calls.append(
            {
                "recipient_id": recipient_id,
                "title": title,
                "body": body,
                "metadata": metadata or {},
                "notification_type": notification_type,
            }
        )
        if self.fail:
            raise RuntimeError("push gateway unavailable")


class FakeMediaProvider:
    url = "wss://media.test"

    def __init__(self):
        self.calls = []

    def mint_token(self, channel, user_id, role, ttl_seconds, consultation_type=None, display_name=None):
        self.calls.append(
            {
                "channel": channel,
                "user_id": user_id,
                "role": role,
                "ttl_seconds": ttl_seconds,
                "consultation_type": consultation_type,
            }
        )
        return f"token:{channel}:{user_id}:{role}"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'telehealth.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def policy() -> WorkflowPolicy:
    return WorkflowPolicy()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def media() -> FakeMediaProvider:
    return FakeMediaProvider()


@pytest.fixture
def make_user(db):
    async def _make_user(role: UserRole, email: str, **fields) -> User:
        user = User(email=email, role=role.value, **fields)
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
async def doctor(make_user) -> User:
    return await make_user(UserRole.DOCTOR, "house@clinic.test", first_name="Greg", last_name="House", specialty="Diagnostics")


@pytest.fixture
async def other_doctor(make_user) -> User:
    return await make_user(UserRole.DOCTOR, "wilson@clinic.test", first_name="James", last_name="Wilson", specialty="Oncology")


@pytest.fixture
async def patient(make_user) -> User:
    return await make_user(UserRole.PATIENT, "alice@patients.test", first_name="Alice", push_token="expo-alice-token")


@pytest.fixture
async def other_patient(make_user) -> User:
    return await make_user(UserRole.PATIENT, "bob@patients.test", first_name="Bob")


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, "admin@clinic.test")


@pytest.fixture
def actor_of():
    return Actor.from_user


@pytest.fixture
def make_slot(db):
    """Insert a slot directly, skipping the future-start check of the ledger."""

    async def _make_slot(
        doctor: User,
        start: datetime,
        minutes: int = 30,
        status: AvailabilityStatus = AvailabilityStatus.AVAILABLE,
    ) -> Availability:
        slot = Availability(
            doctor_id=doctor.id,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            status=status.value,
        )
        db.add(slot)
        await db.commit()
        return slot

    return _make_slot


@pytest.fixture
def make_appointment(db):
    """Insert an appointment (and book its slot) directly."""

    async def _make_appointment(
        patient: User,
        slot: Availability,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        type: AppointmentType = AppointmentType.VIRTUAL,
        consultation_type: ConsultationType | None = ConsultationType.VIDEO,
        duration: int | None = 30,
    ) -> Appointment:
        virtual = type == AppointmentType.VIRTUAL
        slot.status = AvailabilityStatus.BOOKED.value
        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=slot.doctor_id,
            availability_id=slot.id,
            scheduled_at=slot.start_time,
            type=type.value,
            consultation_type=consultation_type.value if virtual and consultation_type else None,
            duration=duration if virtual else None,
            status=status.value,
            session_id=f"consult-{slot.id.hex}" if virtual else None,
        )
        db.add(appointment)
        await db.commit()
        return appointment

    return _make_appointment
