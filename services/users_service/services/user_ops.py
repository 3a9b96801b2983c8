"""Account lookups and creation used by the payment flows."""

from typing import Optional

from libs.common.logging import get_logger
from passlib.context import CryptContext
from services.users_service.models import User, UserRole
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def password_verified(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def find_by_identifier(db: AsyncSession, identifier: str) -> Optional[User]:
    """Find a user by email or phone.

    Identifiers containing ``@`` are matched against email only; anything else
    is tried as a phone number first and then as an email.
    """
    identifier = (identifier or "").strip()
    if not identifier:
        return None

    email_match = select(User).where(func.lower(User.email) == identifier.lower())
    if "@" in identifier:
        result = await db.execute(email_match)
        return result.scalar_one_or_none()

    result = await db.execute(select(User).where(User.phone == identifier))
    user = result.scalar_one_or_none()
    if user:
        return user
    result = await db.execute(email_match)
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    full_name: str,
    password: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    role: UserRole = UserRole.DONORS,
) -> User:
    """Create an account with a bcrypt-hashed password. Commits."""
    if not email and not phone:
        raise ValueError("Either email or phone is required")

    user = User(
        full_name=full_name,
        email=email.lower() if email else None,
        phone=phone,
        password_hash=get_password_hash(password),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(
        "User created",
        extra={"extra_fields": {"user_id": str(user.id), "role": user.role.value}},
    )
    return user
