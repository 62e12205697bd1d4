"""FastAPI dependencies for dependency injection."""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.services import users as user_service
from core.errors import ForbiddenError, UnauthorizedError, ValidationFailedError
from core.identity import IdentityNotResolved, resolve_user_id
from core.middleware.authentication import get_current_session
from core.middleware.logging import user_id_var
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the acting user from the session claims and load the account.

    Every authenticated route goes through here; routes never read ids off
    the session themselves.
    """
    session = get_current_session(request)
    if session is None:
        raise UnauthorizedError("Unauthorized")

    async def lookup_email(email: str):
        return await user_service.find_user_id_by_email(db, email)

    try:
        user_id = await resolve_user_id(session, lookup_email)
    except IdentityNotResolved as e:
        raise UnauthorizedError(str(e))

    user = await user_service.get_user(db, user_id)
    if user is None:
        logger.warning(f"Session refers to unknown user {user_id}")
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise ForbiddenError("User account is inactive")

    request.scope["user_id"] = user.id
    user_id_var.set(user.id)
    return user


async def require_admin_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require user to be an admin."""
    if not current_user.is_admin:
        raise ForbiddenError("Admin access required")
    return current_user


def get_pagination_params(page: int = 1, pageSize: int = 20) -> PaginationParams:
    """
    Get pagination parameters from ``page`` / ``pageSize`` query parameters.

    Page sizes above 100 are capped.
    """
    if page < 1:
        raise ValidationFailedError("Page must be >= 1")
    if pageSize < 1:
        raise ValidationFailedError("Page size must be >= 1")
    return PaginationParams(page=page, page_size=min(pageSize, 100))
