"""Admin user management."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_pagination_params, require_admin_user
from api.schemas.common import MessageResponse, PaginatedResponse, PaginationParams
from api.schemas.users import UserResponse, UserUpdateRequest
from api.services import users as user_service
from core.errors import ConflictError
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.get("", response_model=PaginatedResponse[UserResponse], summary="List users")
async def list_users(
    role: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Matches name or email"),
    pagination: PaginationParams = Depends(get_pagination_params),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    users, total = await user_service.list_users(
        db,
        role=role,
        status=status_filter,
        search=search,
        offset=pagination.offset,
        limit=pagination.page_size,
    )
    return PaginatedResponse[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        total_pages=PaginatedResponse.pages_for(total, pagination),
    )


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(
    user_id: str = Path(..., description="User ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    request: UserUpdateRequest,
    user_id: str = Path(..., description="User ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id == admin.id and request.role not in (None, admin.role):
        raise ConflictError("Admins cannot change their own role")
    return await user_service.update_user(
        db, user_id, request.model_dump(exclude_unset=True), acting_user_id=admin.id
    )


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(
    user_id: str = Path(..., description="User ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id == admin.id:
        raise ConflictError("Admins cannot delete their own account")
    await user_service.delete_user(db, user_id, acting_user_id=admin.id)
    return MessageResponse(message="User deleted successfully")
