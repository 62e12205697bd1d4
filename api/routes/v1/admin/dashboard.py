"""Admin dashboard statistics."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_admin_user
from api.schemas.admin import DashboardStats
from api.services import admin as admin_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/admin/dashboard", tags=["admin"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard statistics",
    description="Totals, the five newest applications and a six-month histogram of applications.",
)
async def get_stats(
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.dashboard_stats(db)
