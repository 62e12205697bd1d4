"""
Applicant application endpoints.

Drafts, submission, edits and withdrawal of the signed-in user's
applications. Admins may also read, edit and withdraw any application.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.applications import (
    ApplicationDraftRequest,
    ApplicationResponse,
    ApplicationSubmitRequest,
    ApplicationSubmitResponse,
    ApplicationSummary,
    ApplicationUpdateRequest,
    ApplicationUpdateResponse,
    DraftFormResponse,
    DraftSaveResponse,
    WithdrawResponse,
)
from api.services import applications as application_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get(
    "",
    response_model=List[ApplicationSummary],
    summary="List my applications",
    description="The signed-in user's applications, most recently updated first.",
)
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status", description="Lifecycle state"),
    vacancy_id: Optional[str] = Query(None, alias="vacancyId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.list_user_applications(
        db, current_user.id, status=status_filter, vacancy_id=vacancy_id
    )


@router.post(
    "",
    response_model=ApplicationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an application",
    description="Submit for a vacancy. An existing draft for the vacancy is submitted in place.",
)
async def submit_application(
    request: ApplicationSubmitRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application, warnings = await application_service.submit_application(
        db,
        current_user.id,
        request.vacancy_id,
        request.sections(),
        request.terms_agreement,
    )
    return ApplicationSubmitResponse(
        message="Application submitted successfully",
        application_id=application.id,
        status=application.status,
        warnings=warnings,
    )


@router.post(
    "/draft",
    response_model=DraftSaveResponse,
    summary="Save a draft",
    description="Create or update the draft for (user, vacancyId). Drafts are not validated.",
)
async def save_draft(
    request: ApplicationDraftRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await application_service.save_draft(
        db,
        current_user.id,
        request.vacancy_id,
        request.sections(),
        terms_agreement=request.terms_agreement,
    )
    return DraftSaveResponse(message="Draft saved successfully", application_id=application.id)


@router.get(
    "/draft",
    response_model=DraftFormResponse,
    summary="Load the application form for a vacancy",
    description="The existing draft, or a new form pre-filled from the profile.",
)
async def get_draft(
    vacancy_id: str = Query(..., alias="vacancyId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.draft_form(db, current_user.id, vacancy_id)


@router.get("/{application_id}", response_model=ApplicationResponse, summary="Get an application")
async def get_application(
    application_id: str = Path(..., description="Application ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.get_application_for(db, application_id, current_user)


@router.put(
    "/{application_id}",
    response_model=ApplicationUpdateResponse,
    summary="Edit an application",
    description="Only draft and submitted applications can be edited. `submit: true` submits a draft.",
)
async def update_application(
    request: ApplicationUpdateRequest,
    application_id: str = Path(..., description="Application ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application, warnings = await application_service.update_application(
        db,
        application_id,
        current_user,
        request.sections(),
        terms_agreement=request.terms_agreement,
        submit=request.submit,
    )
    return ApplicationUpdateResponse(
        message="Application updated successfully",
        application=ApplicationResponse.model_validate(application),
        warnings=warnings,
    )


@router.delete(
    "/{application_id}",
    response_model=WithdrawResponse,
    summary="Withdraw an application",
    description="Allowed from draft, submitted and under-review. Withdrawal is final.",
)
async def withdraw_application(
    application_id: str = Path(..., description="Application ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await application_service.withdraw_application(db, application_id, current_user)
    return WithdrawResponse(
        message="Application withdrawn successfully",
        application_id=application.id,
        status=application.status,
    )
