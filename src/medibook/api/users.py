"""User CRUD operations."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from medibook.database import utcnow
from medibook.models.user import Role, User
from medibook.schemas.user import RegisterRequest, UserUpsert
from medibook.services.security import hash_password


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    """Get user by ID with their doctor profile."""
    result = await db.execute(
        select(User).where(User.id == user_id).options(selectinload(User.doctor_profile))
    )
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Get user by (normalised) email."""
    result = await db.execute(
        select(User)
        .where(User.email == email.strip().lower())
        .options(selectinload(User.doctor_profile))
    )
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: RegisterRequest) -> User:
    """Create a local account with a hashed password."""
    fields = data.model_dump(exclude={"password"})
    fields["role"] = data.role.value
    db_user = User(**fields, password_hash=hash_password(data.password))
    db.add(db_user)
    await db.flush()
    await db.refresh(db_user)
    return db_user


async def upsert_user(db: AsyncSession, data: UserUpsert) -> User:
    """Insert a user or overwrite the supplied fields of an existing one."""
    fields = data.model_dump(exclude_unset=True)
    if "role" in fields:
        fields["role"] = data.role.value

    db_user = await db.get(User, data.id)
    if db_user is None:
        fields.setdefault("role", Role.PATIENT.value)
        db_user = User(**fields)
        db.add(db_user)
    else:
        for key, value in fields.items():
            setattr(db_user, key, value)
        db_user.updated_at = utcnow()

    await db.flush()
    await db.refresh(db_user)
    return db_user


async def update_user_role(db: AsyncSession, user: User, role: Role) -> User:
    """Change a user's role."""
    user.role = role.value
    await db.flush()
    await db.refresh(user, attribute_names=["role", "updated_at"])
    return user
