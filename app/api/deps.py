"""API Dependencies"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.config import WalletPolicy, wallet_policy
from app.database import get_db
from app.core.security import decode_token
from app.models.enums import UserRole
from app.models.user import User
from app.services.deposit_service import DepositService
from app.services.wallet_service import WalletService

# Security scheme for bearer token
security = HTTPBearer()

__all__ = [
    "get_db",
    "get_policy",
    "get_current_user",
    "require_student",
    "require_parent",
    "require_admin",
    "require_guardian",
    "ensure_can_view_student",
]


def get_policy() -> WalletPolicy:
    """Wallet policy validated at startup; override in tests"""
    return wallet_policy


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    Resolve the bearer token issued by the identity provider to a user.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id_str: Optional[str] = payload.get("sub")
    if not user_id_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    return user


def _require_role(role: UserRole):
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user
    return checker


require_student = _require_role(UserRole.STUDENT)
require_parent = _require_role(UserRole.PARENT)
require_admin = _require_role(UserRole.SCHOOL_ADMIN)


async def require_guardian(current_user: User = Depends(get_current_user)) -> User:
    """Parents and school admins may manage a student's settings"""
    if current_user.role not in (UserRole.PARENT, UserRole.SCHOOL_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return current_user


async def ensure_can_view_student(db: AsyncSession, current_user: User, student_id: UUID) -> None:
    """
    Students see themselves, parents see linked children, admins see
    students of their own school. Anything else is a 404.
    """
    if current_user.role == UserRole.STUDENT and current_user.id == student_id:
        return
    if current_user.role == UserRole.PARENT:
        if await DepositService.has_active_relationship(
            db, current_user.id, student_id, current_user.school_id
        ):
            return
    if current_user.role == UserRole.SCHOOL_ADMIN:
        if await WalletService.get_student(db, student_id, current_user.school_id):
            return
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
