"""Hospital routes - API endpoints for the hospital registry."""

from fastapi import APIRouter, Query, Response
from uuid import UUID

from telehealth.api.deps import CurrentActor, DBSession, PolicyDep
from telehealth.exceptions import ForbiddenError
from telehealth.schemas.common import Envelope, ok
from telehealth.schemas.hospital import HospitalCreate, HospitalDetail, HospitalResponse, HospitalUpdate
from telehealth.schemas.user import DoctorSummary
from telehealth.services.hospital_service import HospitalService
from telehealth.services.policy import Actor, WorkflowPolicy
from telehealth.services.user_service import UserService

router = APIRouter()


def require_admin(actor: Actor, policy: WorkflowPolicy) -> None:
    if not policy.is_admin(actor):
        raise ForbiddenError("Admin access required", role=actor.role)


@router.post("", response_model=Envelope[HospitalResponse], status_code=201)
async def create_hospital(
    hospital_data: HospitalCreate,
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
):
    """Register a hospital (admins only)."""
    require_admin(actor, policy)
    return ok(await HospitalService(db).create_hospital(hospital_data))


@router.get("", response_model=Envelope[list[HospitalResponse]])
async def list_hospitals(
    db: DBSession,
    actor: CurrentActor,
    name: str | None = None,
    services: list[str] | None = Query(None, description="Match hospitals offering any of these"),
    latitude: float | None = Query(None, ge=-90, le=90),
    longitude: float | None = Query(None, ge=-180, le=180),
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1, le=100),
):
    """Search hospitals by name, services or location."""
    service = HospitalService(db)
    return ok(await service.list_hospitals(name, services, latitude, longitude, skip, take))


@router.get("/{hospital_id}", response_model=Envelope[HospitalDetail])
async def get_hospital(hospital_id: UUID, db: DBSession, actor: CurrentActor):
    """Get a hospital and the doctors attached to it."""
    hospital = await HospitalService(db).get_hospital(hospital_id)
    doctors = await UserService(db).list_doctors(hospital_id=hospital_id, limit=200)

    detail = HospitalDetail.model_validate(hospital)
    detail.doctors = [DoctorSummary.model_validate(doctor) for doctor in doctors]
    return ok(detail)


@router.patch("/{hospital_id}", response_model=Envelope[HospitalResponse])
async def update_hospital(
    hospital_id: UUID,
    hospital_data: HospitalUpdate,
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
):
    """Update hospital fields (admins only)."""
    require_admin(actor, policy)
    return ok(await HospitalService(db).update_hospital(hospital_id, hospital_data))


@router.delete("/{hospital_id}", status_code=204)
async def delete_hospital(
    hospital_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
):
    """Delete a hospital with no doctors attached (admins only)."""
    require_admin(actor, policy)
    await HospitalService(db).delete_hospital(hospital_id)
    return Response(status_code=204)
