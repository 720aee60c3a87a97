"""Hospital service - Business logic for the hospital registry."""

import logging
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.exceptions import LinkedError, NotFoundError
from telehealth.models.hospital import Hospital
from telehealth.models.user import User
from telehealth.schemas.hospital import HospitalCreate, HospitalUpdate

logger = logging.getLogger(__name__)

# Half-width in degrees of the box used for the location filter
NEARBY_DEGREES = 0.1


class HospitalService:
    """Service class for hospital operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_hospital(self, hospital_data: HospitalCreate) -> Hospital:
        """Register a hospital."""
        hospital = Hospital(**hospital_data.model_dump())
        self.db.add(hospital)
        await self.db.flush()
        await self.db.refresh(hospital)
        logger.info(f"Created hospital {hospital.id} ({hospital.name})")
        return hospital

    async def get_hospital(self, hospital_id: UUID) -> Hospital:
        """Get a hospital by ID or raise NotFoundError."""
        hospital = await self.db.get(Hospital, hospital_id)
        if hospital is None:
            raise NotFoundError("Hospital not found", hospital_id=str(hospital_id))
        return hospital

    async def list_hospitals(
        self,
        name: str | None = None,
        services: list[str] | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> list[Hospital]:
        """
        List hospitals, newest first.

        ``name`` is a case-insensitive contains match. ``services`` matches
        hospitals offering any of the given services. The location filter
        applies only when both coordinates are given.
        """
        query = select(Hospital)

        if name:
            query = query.where(Hospital.name.ilike(f"%{name.strip()}%"))

        wanted = [s.strip() for s in services or [] if s and s.strip()]
        if wanted:
            encoded = cast(Hospital.services, String)
            query = query.where(or_(*(encoded.like(f'%"{s}"%') for s in wanted)))

        if latitude is not None and longitude is not None:
            query = query.where(
                Hospital.latitude.between(latitude - NEARBY_DEGREES, latitude + NEARBY_DEGREES),
                Hospital.longitude.between(longitude - NEARBY_DEGREES, longitude + NEARBY_DEGREES),
            )

        query = query.order_by(Hospital.created_at.desc()).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_hospital(self, hospital_id: UUID, hospital_data: HospitalUpdate) -> Hospital:
        """Apply the fields that were sent."""
        hospital = await self.get_hospital(hospital_id)

        for field, value in hospital_data.model_dump(exclude_unset=True).items():
            setattr(hospital, field, value)

        await self.db.flush()
        await self.db.refresh(hospital)
        logger.info(f"Updated hospital {hospital_id}")
        return hospital

    async def delete_hospital(self, hospital_id: UUID) -> None:
        """Delete a hospital that has no doctors attached."""
        hospital = await self.get_hospital(hospital_id)

        doctors = await self.db.scalar(
            select(func.count()).select_from(User).where(User.hospital_id == hospital_id)
        )
        if doctors:
            raise LinkedError(
                "Cannot delete hospital with associated doctors",
                hospital_id=str(hospital_id),
                doctors=doctors,
            )

        await self.db.delete(hospital)
        await self.db.flush()
        logger.info(f"Deleted hospital {hospital_id}")
