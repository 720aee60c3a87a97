import uuid

import pytest

from telehealth.exceptions import LinkedError, NotFoundError
from telehealth.models import UserRole
from telehealth.schemas.hospital import HospitalCreate, HospitalUpdate
from telehealth.services.hospital_service import HospitalService


@pytest.fixture
def service(db) -> HospitalService:
    return HospitalService(db)


@pytest.fixture
def make_hospital(service):
    async def _make_hospital(name: str, **fields):
        fields.setdefault("address", f"1 {name} Way")
        fields.setdefault("phone", "+1-555-0100")
        data = HospitalCreate(name=name, **fields)
        return await service.create_hospital(data)

    return _make_hospital


async def test_create_and_get_hospital(service, make_hospital) -> None:
    hospital = await make_hospital("Princeton-Plainsboro", services=["diagnostics", "oncology"], rating=4.5)

    fetched = await service.get_hospital(hospital.id)

    assert fetched.name == "Princeton-Plainsboro"
    assert fetched.services == ["diagnostics", "oncology"]
    assert fetched.rating == 4.5


async def test_unknown_hospital_is_not_found(service) -> None:
    with pytest.raises(NotFoundError):
        await service.get_hospital(uuid.uuid4())


async def test_list_filters_by_name_and_services(service, make_hospital) -> None:
    general = await make_hospital("Seattle Grace", services=["surgery", "cardiology"])
    children = await make_hospital("Seattle Children's", services=["pediatrics"])
    await make_hospital("County General", services=["emergency"])

    by_name = await service.list_hospitals(name="seattle")
    by_service = await service.list_hospitals(services=["cardiology", "pediatrics"])
    none_offered = await service.list_hospitals(services=["dermatology"])

    assert {h.id for h in by_name} == {general.id, children.id}
    assert {h.id for h in by_service} == {general.id, children.id}
    assert none_offered == []


async def test_list_filters_by_location_only_with_both_coordinates(service, make_hospital) -> None:
    near = await make_hospital("Harbor Clinic", latitude=47.60, longitude=-122.33)
    far = await make_hospital("Mountain Clinic", latitude=46.85, longitude=-121.76)

    nearby = await service.list_hospitals(latitude=47.62, longitude=-122.35)
    latitude_only = await service.list_hospitals(latitude=47.62)

    assert [h.id for h in nearby] == [near.id]
    assert {h.id for h in latitude_only} == {near.id, far.id}


async def test_list_pages(service, make_hospital) -> None:
    for i in range(3):
        await make_hospital(f"Clinic {i}")

    first = await service.list_hospitals(skip=0, limit=2)
    rest = await service.list_hospitals(skip=2, limit=2)

    assert len(first) == 2
    assert len(rest) == 1
    assert {h.id for h in first}.isdisjoint({h.id for h in rest})


async def test_update_changes_only_sent_fields(service, make_hospital) -> None:
    hospital = await make_hospital("Mercy West", phone="+1-555-0199", about="Teaching hospital")

    updated = await service.update_hospital(hospital.id, HospitalUpdate(phone="+1-555-0123"))

    assert updated.phone == "+1-555-0123"
    assert updated.name == "Mercy West"
    assert updated.about == "Teaching hospital"


async def test_delete_refused_while_doctors_attached(service, make_hospital, make_user) -> None:
    hospital = await make_hospital("St. Eligius")
    hospital_id = hospital.id
    await make_user(UserRole.DOCTOR, "westphall@eligius.test", hospital_id=hospital_id)

    with pytest.raises(LinkedError) as exc:
        await service.delete_hospital(hospital_id)

    assert exc.value.details["doctors"] == 1


async def test_delete_empty_hospital(service, make_hospital) -> None:
    hospital = await make_hospital("Closed Clinic")
    hospital_id = hospital.id

    await service.delete_hospital(hospital_id)

    with pytest.raises(NotFoundError):
        await service.get_hospital(hospital_id)
