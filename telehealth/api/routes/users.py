"""User routes - API endpoints for user operations."""

from fastapi import APIRouter, Query, Response
from uuid import UUID

from telehealth.api.deps import CurrentActor, CurrentUser, DBSession, PolicyDep
from telehealth.exceptions import ForbiddenError
from telehealth.schemas.common import Envelope, ok
from telehealth.schemas.user import DoctorSummary, DoctorUpdate, UserCreate, UserResponse
from telehealth.services.user_service import UserService

router = APIRouter()


@router.post("", response_model=Envelope[UserResponse], status_code=201)
async def create_user(user_data: UserCreate, db: DBSession, actor: CurrentActor, policy: PolicyDep):
    """Provision a user (admins only; self sign-up lives in the identity service)."""
    if not policy.is_admin(actor):
        raise ForbiddenError("Admin access required", role=actor.role)

    service = UserService(db)
    return ok(await service.create_user(user_data))


@router.get("/me", response_model=Envelope[UserResponse])
async def get_me(user: CurrentUser):
    """Get the authenticated user."""
    return ok(user)


@router.get("/doctors", response_model=Envelope[list[DoctorSummary]])
async def list_doctors(
    db: DBSession,
    actor: CurrentActor,
    specialty: str | None = None,
    hospital_id: UUID | None = None,
    name: str | None = None,
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=200),
):
    """Search the doctor directory by specialty, hospital or name."""
    service = UserService(db)
    return ok(await service.list_doctors(specialty, hospital_id, name, skip, take))


@router.get("/doctors/{doctor_id}", response_model=Envelope[DoctorSummary])
async def get_doctor(doctor_id: UUID, db: DBSession, actor: CurrentActor):
    """Get a doctor's public profile."""
    return ok(await UserService(db).get_doctor(doctor_id))


@router.patch("/doctors/{doctor_id}", response_model=Envelope[DoctorSummary])
async def update_doctor(
    doctor_id: UUID,
    doctor_data: DoctorUpdate,
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
):
    """Update a doctor's profile or hospital (admins only)."""
    if not policy.is_admin(actor):
        raise ForbiddenError("Admin access required", role=actor.role)

    return ok(await UserService(db).update_doctor(doctor_id, doctor_data))


@router.delete("/doctors/{doctor_id}", status_code=204)
async def delete_doctor(doctor_id: UUID, db: DBSession, actor: CurrentActor, policy: PolicyDep):
    """Remove a doctor with no active appointments or open slots (admins only)."""
    if not policy.is_admin(actor):
        raise ForbiddenError("Admin access required", role=actor.role)

    await UserService(db).delete_doctor(doctor_id)
    return Response(status_code=204)


@router.get("/{user_id}", response_model=Envelope[UserResponse])
async def get_user(user_id: UUID, db: DBSession, actor: CurrentActor, policy: PolicyDep):
    """Get a user by ID (yourself, or anyone for admins)."""
    if actor.user_id != user_id and not policy.is_admin(actor):
        raise ForbiddenError("Unauthorized access", user_id=str(user_id))

    service = UserService(db)
    return ok(await service.get_user(user_id))
