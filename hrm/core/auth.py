# hrm/core/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from hrm.database import get_db
from hrm.models.person import Person
from hrm.models.enums import Role
from hrm.config import settings
from hrm.core.errors import Unauthorized, Forbidden, HrmError

reusable_oauth2 = HTTPBearer(auto_error=False)


def create_access_token(person_id: int, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {"sub": str(person_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: Optional[HTTPAuthorizationCredentials] = Depends(reusable_oauth2)
) -> Person:
    if token is None:
        raise Unauthorized("Not authenticated")
    try:
        payload = jwt.decode(
            token.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        person_id = payload.get("sub")
        if person_id is None:
            raise Unauthorized("Could not validate credentials")
        person_id = int(person_id)
    except (JWTError, ValueError):
        raise Unauthorized("Could not validate credentials")

    result = await db.execute(select(Person).where(Person.id == person_id))
    person = result.scalar_one_or_none()
    if person is None or not person.is_active:
        raise Unauthorized("Could not validate credentials")
    return person


async def require_super_admin(
    current_user: Person = Depends(get_current_user)
) -> Person:
    if current_user.role != Role.SUPER_ADMIN:
        raise Forbidden("Super admin access required")
    return current_user


async def require_marker(
    current_user: Person = Depends(get_current_user)
) -> Person:
    if current_user.role not in (Role.ADMIN, Role.SUPER_ADMIN):
        raise Forbidden("Admin access required")
    return current_user


async def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    if not settings.HRM_CRON_SECRET:
        raise HrmError("Server configuration error")
    if not x_cron_secret:
        raise Unauthorized("Missing X-CRON-SECRET header")
    if x_cron_secret != settings.HRM_CRON_SECRET:
        raise Forbidden("Invalid cron secret")
