"""
API Services Layer.

Direct database operations for API endpoints. Services take the request's
``AsyncSession`` and raise ``core.errors`` exceptions; routes stay thin.
"""

from api.services.applications import (
    get_application_for,
    list_user_applications,
    save_draft,
    draft_form,
    submit_application,
    update_application,
    withdraw_application,
)

from api.services.profiles import (
    get_profile,
    upsert_profile,
    writeback_profile,
)

from api.services.vacancies import (
    list_public_vacancies,
    get_public_vacancy,
    reserve_number,
    list_numbers,
    create_vacancy,
    update_vacancy,
    delete_vacancy,
)

from api.services.users import (
    find_user_id_by_email,
    create_user,
    authenticate,
    list_users,
    update_user,
    delete_user,
)

from api.services.admin import (
    list_admin_applications,
    get_admin_application,
    update_application_status,
    dashboard_stats,
)

__all__ = [
    # Applications
    "get_application_for",
    "list_user_applications",
    "save_draft",
    "draft_form",
    "submit_application",
    "update_application",
    "withdraw_application",
    # Profiles
    "get_profile",
    "upsert_profile",
    "writeback_profile",
    # Vacancies
    "list_public_vacancies",
    "get_public_vacancy",
    "reserve_number",
    "list_numbers",
    "create_vacancy",
    "update_vacancy",
    "delete_vacancy",
    # Users
    "find_user_id_by_email",
    "create_user",
    "authenticate",
    "list_users",
    "update_user",
    "delete_user",
    # Admin
    "list_admin_applications",
    "get_admin_application",
    "update_application_status",
    "dashboard_stats",
]
