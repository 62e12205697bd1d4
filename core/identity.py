"""
Identity resolution for session claims of unreliable shape.

Upstream sessions do not agree on which field carries the user id. Every
operation that attributes an action to a user resolves the id here, through
one ordered chain of lookups, instead of checking fields per route.
"""

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from core.security import mask_email

logger = logging.getLogger(__name__)

# Ordered key paths into the session; first non-empty value wins.
ID_FIELD_PATHS: Sequence[tuple[str, ...]] = (
    ("user", "id"),
    ("user", "sub"),
    ("sub",),
    ("userId",),
    ("id",),
)

EMAIL_FIELD_PATHS: Sequence[tuple[str, ...]] = (
    ("user", "email"),
    ("email",),
)

EmailLookup = Callable[[str], Awaitable[Optional[str]]]


class IdentityNotResolved(Exception):
    """The session carries neither a usable id nor a known email."""


def _lookup_path(session: Mapping[str, Any], path: Sequence[str]) -> Any:
    value: Any = session
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _non_empty(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def session_user_id(session: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Return the first id found in the session, without any store lookup."""
    if not session:
        return None
    for path in ID_FIELD_PATHS:
        value = _non_empty(_lookup_path(session, path))
        if value:
            logger.debug(f"Resolved user id from session field {'.'.join(path)}")
            return value
    return None


def session_email(session: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not session:
        return None
    for path in EMAIL_FIELD_PATHS:
        value = _non_empty(_lookup_path(session, path))
        if value:
            return value
    return None


async def resolve_user_id(
    session: Optional[Mapping[str, Any]],
    lookup_email: EmailLookup,
) -> str:
    """
    Produce a stable user id from a session.

    Args:
        session: Decoded session claims
        lookup_email: Coroutine returning the id of the user with exactly
            this email, or None

    Returns:
        The user id

    Raises:
        IdentityNotResolved: No id field and no email that matches a user
    """
    user_id = session_user_id(session)
    if user_id:
        return user_id

    email = session_email(session)
    if not email:
        logger.warning("Session carries neither a user id nor an email")
        raise IdentityNotResolved("User ID not found in session")

    found = await lookup_email(email)
    if not found:
        logger.warning(f"No user matches session email {mask_email(email)}")
        raise IdentityNotResolved("User ID not found in session")

    logger.info(f"Resolved user id by email lookup for {mask_email(email)}")
    return str(found)
