"""
Application lifecycle state machine.

    draft ──submit──> submitted ──admin──> under-review | shortlisted |
                                           interview | hired | rejected
    draft | submitted | under-review ──withdraw──> withdrawn (terminal)

Editing is allowed in ``draft`` and ``submitted`` only. Review states may be
set by an admin in any order once the application has been submitted.
"""

from enum import Enum
from typing import Optional

from core.errors import ConflictError, ValidationFailedError


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# Legacy labels used by older admin views; never stored.
STATUS_ALIASES: dict[str, ApplicationStatus] = {
    "pending": ApplicationStatus.DRAFT,
    "approved": ApplicationStatus.SHORTLISTED,
}

EDITABLE_STATES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED})

WITHDRAWABLE_STATES = frozenset({
    ApplicationStatus.DRAFT,
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.UNDER_REVIEW,
})

REVIEW_STATES = frozenset({
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.HIRED,
    ApplicationStatus.REJECTED,
})

# States from which an admin may move an application into a review state.
REVIEWABLE_STATES = REVIEW_STATES | {ApplicationStatus.SUBMITTED}


def normalize_status(value: Optional[str]) -> Optional[ApplicationStatus]:
    """
    Map a status label, including legacy aliases, to its canonical state.

    Raises:
        ValidationFailedError: Unknown label
    """
    if value is None or value == "":
        return None
    if isinstance(value, ApplicationStatus):
        return value
    label = str(value).strip().lower()
    if label in STATUS_ALIASES:
        return STATUS_ALIASES[label]
    try:
        return ApplicationStatus(label)
    except ValueError:
        raise ValidationFailedError(f"Unknown application status: {value}")


def can_edit(status: str) -> bool:
    return ApplicationStatus(status) in EDITABLE_STATES


def can_withdraw(status: str) -> bool:
    return ApplicationStatus(status) in WITHDRAWABLE_STATES


def ensure_editable(status: str) -> None:
    if not can_edit(status):
        raise ConflictError("This application cannot be updated anymore")


def ensure_withdrawable(status: str) -> None:
    if ApplicationStatus(status) == ApplicationStatus.WITHDRAWN:
        raise ConflictError("This application has already been withdrawn")
    if not can_withdraw(status):
        raise ConflictError("This application cannot be withdrawn anymore")


def ensure_submittable(status: str) -> None:
    """Only drafts can be submitted; anything else means the user already applied."""
    current = ApplicationStatus(status)
    if current == ApplicationStatus.WITHDRAWN:
        raise ConflictError("A withdrawn application cannot be resubmitted")
    if current != ApplicationStatus.DRAFT:
        raise ConflictError("You have already applied for this position")


def ensure_review_transition(current: str, target: str) -> ApplicationStatus:
    """
    Validate an admin status change and return the canonical target.

    Raises:
        ValidationFailedError: Target is not a review state
        ConflictError: Current state does not allow review
    """
    new_status = normalize_status(target)
    if new_status is None or new_status not in REVIEW_STATES:
        allowed = ", ".join(sorted(s.value for s in REVIEW_STATES))
        raise ValidationFailedError(f"Status must be one of: {allowed}")

    current_status = ApplicationStatus(current)
    if current_status == ApplicationStatus.WITHDRAWN:
        raise ConflictError("A withdrawn application cannot change status")
    if current_status not in REVIEWABLE_STATES:
        raise ConflictError("Only submitted applications can be reviewed")
    return new_status
