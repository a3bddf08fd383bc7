"""Appointment CRUD operations."""

from datetime import datetime
from typing import Optional

from sqlalchemy import exists, select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from medibook.models.appointment import Appointment, AppointmentStatus
from medibook.models.doctor import Doctor
from medibook.schemas.appointment import AppointmentCreate, AppointmentUpdate


def _with_participants(query):
    return query.options(
        selectinload(Appointment.doctor).selectinload(Doctor.user),
        selectinload(Appointment.patient),
    )


async def create_appointment(
    db: AsyncSession, patient_id: str, appointment: AppointmentCreate
) -> Appointment:
    """Book an appointment for ``patient_id``. New bookings are always scheduled."""
    db_appointment = Appointment(
        **appointment.model_dump(),
        patient_id=patient_id,
        status=AppointmentStatus.SCHEDULED.value,
    )
    db.add(db_appointment)
    await db.flush()
    await db.refresh(db_appointment)
    return db_appointment


async def get_appointment_by_id(db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
    """Get appointment by ID with both participants."""
    result = await db.execute(
        _with_participants(select(Appointment).where(Appointment.id == appointment_id))
    )
    return result.scalar_one_or_none()


async def get_appointments_by_patient(db: AsyncSession, patient_id: str) -> list[Appointment]:
    """A patient's appointments, most recent appointment date first."""
    result = await db.execute(
        _with_participants(
            select(Appointment)
            .where(Appointment.patient_id == patient_id)
            .order_by(desc(Appointment.appointment_date), desc(Appointment.id))
        )
    )
    return list(result.scalars().all())


async def get_appointments_by_doctor(db: AsyncSession, doctor_id: int) -> list[Appointment]:
    """Appointments against a doctor profile, most recent appointment date first."""
    result = await db.execute(
        _with_participants(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .order_by(desc(Appointment.appointment_date), desc(Appointment.id))
        )
    )
    return list(result.scalars().all())


async def find_conflicting_appointment(
    db: AsyncSession,
    doctor_id: int,
    appointment_date: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    """Return a scheduled appointment already holding this doctor's slot, if any."""
    query = select(Appointment).where(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.status == AppointmentStatus.SCHEDULED.value,
    )
    if exclude_id is not None:
        query = query.where(Appointment.id != exclude_id)

    result = await db.execute(query.limit(1))
    return result.scalars().first()


async def update_appointment(
    db: AsyncSession, db_appointment: Appointment, updates: AppointmentUpdate
) -> Appointment:
    """Apply only the supplied fields of ``updates``."""
    update_data = updates.model_dump(exclude_unset=True)
    if "status" in update_data:
        update_data["status"] = updates.status.value

    for key, value in update_data.items():
        setattr(db_appointment, key, value)

    await db.flush()
    await db.refresh(db_appointment)
    return db_appointment


async def cancel_appointment(db: AsyncSession, db_appointment: Appointment) -> Appointment:
    """Mark an appointment cancelled. The row is kept."""
    if db_appointment.status != AppointmentStatus.CANCELLED.value:
        db_appointment.status = AppointmentStatus.CANCELLED.value
        await db.flush()
        await db.refresh(db_appointment)
    return db_appointment


async def has_active_appointment(db: AsyncSession, doctor_id: int, patient_id: str) -> bool:
    """True if the patient has a scheduled or completed appointment with this doctor."""
    result = await db.execute(
        select(
            exists().where(
                Appointment.doctor_id == doctor_id,
                Appointment.patient_id == patient_id,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
        )
    )
    return bool(result.scalar())
