"""
User service functions for API endpoints.

Accounts, credentials and the administrator user management operations.
Password hashes never leave this module.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from core.security import (
    AuditAction,
    ResourceType,
    hash_password,
    log_audit_event,
    mask_email,
    verify_password,
)
from database.models.users import User, UserRole, UserStatus

logger = logging.getLogger(__name__)


async def find_user_id_by_email(db: AsyncSession, email: str) -> Optional[str]:
    """
    Exact-match email lookup used by identity resolution.

    Returns:
        The user id, or None
    """
    result = await db.execute(select(User.id).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Register an account.

    Raises:
        ConflictError: The email is already registered
    """
    existing = await find_user_id_by_email(db, email)
    if existing:
        raise ConflictError("User with this email already exists")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User with this email already exists")
    await db.refresh(user)

    logger.info(f"Registered user {user.id} ({mask_email(email)})")
    await log_audit_event(
        AuditAction.REGISTER,
        ResourceType.USER,
        resource_id=user.id,
        user_id=user.id,
        details={"email": email, "role": user.role},
        contains_pii=True,
    )
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials.

    Raises:
        UnauthorizedError: Unknown email or wrong password
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash or ""):
        logger.warning(f"Failed login for {mask_email(email)}")
        raise UnauthorizedError("Invalid email or password")
    if not user.is_active:
        raise ForbiddenError("User account is inactive")

    await log_audit_event(AuditAction.LOGIN, ResourceType.USER, resource_id=user.id, user_id=user.id)
    return user


async def list_users(
    db: AsyncSession,
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[List[User], int]:
    """
    List users, newest first.

    Returns:
        (users on the page, total matching)
    """
    stmt = select(User)
    if role:
        stmt = stmt.where(User.role == role)
    if status:
        stmt = stmt.where(User.status == status)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            func.lower(User.name).like(pattern) | func.lower(User.email).like(pattern)
        )

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
    result = await db.execute(
        stmt.order_by(User.created_at.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def update_user(
    db: AsyncSession,
    user_id: str,
    changes: Dict[str, Any],
    acting_user_id: Optional[str] = None,
) -> User:
    """
    Change name, email, role or status.

    Raises:
        NotFoundError: Unknown user
        ConflictError: Email already used by another account
    """
    user = await get_user_or_404(db, user_id)

    email = changes.get("email")
    if email and email != user.email:
        other = await find_user_id_by_email(db, email)
        if other and other != user.id:
            raise ConflictError("Email is already in use")

    for field in ("name", "email", "role", "status"):
        if changes.get(field) is not None:
            setattr(user, field, changes[field])

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email is already in use")
    await db.refresh(user)

    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.USER,
        resource_id=user.id,
        user_id=acting_user_id,
        details={k: v for k, v in changes.items() if v is not None},
        contains_pii="email" in changes,
    )
    return user


async def delete_user(db: AsyncSession, user_id: str, acting_user_id: Optional[str] = None) -> None:
    """
    Delete an account.

    Raises:
        NotFoundError: Unknown user
    """
    await get_user_or_404(db, user_id)
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()

    logger.info(f"Deleted user {user_id}")
    await log_audit_event(
        AuditAction.DELETE, ResourceType.USER, resource_id=user_id, user_id=acting_user_id
    )
