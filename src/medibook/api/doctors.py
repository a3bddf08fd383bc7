"""Doctor profile CRUD operations."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from medibook.models.doctor import Doctor
from medibook.schemas.doctor import DoctorCreate, DoctorUpdate

# Sent by the search UI to mean "no specialty filter"
ALL_SPECIALTIES = "All Specialties"


async def create_doctor_profile(db: AsyncSession, user_id: str, doctor: DoctorCreate) -> Doctor:
    """Create a doctor profile owned by ``user_id``."""
    db_doctor = Doctor(**doctor.model_dump(), user_id=user_id)
    db.add(db_doctor)
    await db.flush()
    await db.refresh(db_doctor)
    return db_doctor


async def get_doctor_profile(db: AsyncSession, user_id: str) -> Optional[Doctor]:
    """Get the profile owned by a user."""
    result = await db.execute(
        select(Doctor).where(Doctor.user_id == user_id).options(selectinload(Doctor.user))
    )
    return result.scalar_one_or_none()


async def get_doctor_by_id(db: AsyncSession, doctor_id: int) -> Optional[Doctor]:
    """Get doctor profile by ID."""
    result = await db.execute(
        select(Doctor).where(Doctor.id == doctor_id).options(selectinload(Doctor.user))
    )
    return result.scalar_one_or_none()


async def get_all_doctors(db: AsyncSession) -> list[Doctor]:
    """Get every available doctor."""
    return await search_doctors(db)


async def search_doctors(
    db: AsyncSession,
    specialty: Optional[str] = None,
    available: Optional[bool] = True,
) -> list[Doctor]:
    """
    Search doctor profiles.

    ``available`` of None drops the availability filter; a missing or
    "All Specialties" ``specialty`` drops the specialty filter.
    """
    query = select(Doctor).options(selectinload(Doctor.user)).order_by(Doctor.id)
    if available is not None:
        query = query.where(Doctor.is_available == available)
    if specialty and specialty != ALL_SPECIALTIES:
        query = query.where(Doctor.specialty == specialty)

    result = await db.execute(query)
    return list(result.scalars().all())


async def update_doctor_profile(
    db: AsyncSession, db_doctor: Doctor, updates: DoctorUpdate
) -> Doctor:
    """Apply only the supplied fields of ``updates``."""
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_doctor, key, value)

    await db.flush()
    await db.refresh(db_doctor)
    return db_doctor
