"""Admin review of applications."""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_pagination_params, require_admin_user
from api.schemas.admin import AdminApplicationDetail, AdminApplicationList, AdminStatusUpdateRequest
from api.schemas.applications import ApplicationResponse
from api.schemas.common import PaginationParams
from api.services import admin as admin_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/admin/applications", tags=["admin"])


def _detail(view: Dict[str, Any]) -> AdminApplicationDetail:
    application = view["application"]
    fields = ApplicationResponse.model_validate(application).model_dump()
    fields.update(
        admin_notes=application.admin_notes,
        user=view["user"],
        vacancy=view["vacancy"],
        user_profile=view["user_profile"],
    )
    return AdminApplicationDetail.model_validate(fields)


@router.get(
    "",
    response_model=AdminApplicationList,
    summary="List applications",
    description=(
        "Newest first. `position` only applies together with `vacancyNumber`; "
        "`search` matches applicant name or email."
    ),
)
async def list_applications(
    vacancy_number: Optional[str] = Query(None, alias="vacancyNumber"),
    position: Optional[str] = Query(None),
    applied_date: Optional[date] = Query(None, alias="appliedDate"),
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination_params),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.list_admin_applications(
        db,
        pagination,
        vacancy_number=vacancy_number,
        position=position,
        applied_date=applied_date,
        search=search,
        status=status_filter,
    )


@router.get("/{application_id}", response_model=AdminApplicationDetail, summary="Get an application")
async def get_application(
    application_id: str = Path(..., description="Application ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return _detail(await admin_service.get_admin_application(db, application_id))


@router.patch(
    "/{application_id}",
    response_model=AdminApplicationDetail,
    summary="Change review status",
    description="Moves a submitted application through review. Drafts and withdrawn applications are final for admins.",
)
async def update_application_status(
    request: AdminStatusUpdateRequest,
    application_id: str = Path(..., description="Application ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    view = await admin_service.update_application_status(
        db, application_id, request.status, request.notes, admin
    )
    return _detail(view)
