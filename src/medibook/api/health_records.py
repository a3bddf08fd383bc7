"""Health record CRUD operations."""

from typing import Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.models.health_record import HealthRecord
from medibook.schemas.health_record import HealthRecordCreate, HealthRecordUpdate


async def create_health_record(
    db: AsyncSession, patient_id: str, record: HealthRecordCreate
) -> HealthRecord:
    """Create a record for ``patient_id``."""
    db_record = HealthRecord(**record.model_dump(exclude={"patient_id"}), patient_id=patient_id)
    db.add(db_record)
    await db.flush()
    await db.refresh(db_record)
    return db_record


async def get_health_records_by_patient(db: AsyncSession, patient_id: str) -> list[HealthRecord]:
    """A patient's records, newest first."""
    result = await db.execute(
        select(HealthRecord)
        .where(HealthRecord.patient_id == patient_id)
        .order_by(desc(HealthRecord.created_at), desc(HealthRecord.id))
    )
    return list(result.scalars().all())


async def get_health_record_by_id(db: AsyncSession, record_id: int) -> Optional[HealthRecord]:
    result = await db.execute(select(HealthRecord).where(HealthRecord.id == record_id))
    return result.scalar_one_or_none()


async def update_health_record(
    db: AsyncSession, db_record: HealthRecord, updates: HealthRecordUpdate
) -> HealthRecord:
    """Apply only the supplied fields of ``updates``."""
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_record, key, value)

    await db.flush()
    await db.refresh(db_record)
    return db_record
