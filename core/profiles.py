"""
Profile aggregation helpers.

A profile and an application share the same reusable sections. Section names
are the snake_case attribute names; section contents keep the camelCase keys
clients send (``firstName``, ``fieldOfStudy``...).
"""

from typing import Any, Mapping, Optional

SECTION_FIELDS: tuple[str, ...] = (
    "personal_info",
    "education",
    "current_experience",
    "previous_experience",
    "training",
    "languages",
    "additional_info",
)

LIST_SECTIONS = frozenset({"education", "previous_experience", "training", "languages"})

# Client-supplied identifiers that must never be persisted.
INTERNAL_ID_KEYS = frozenset({"_id", "id", "userId", "user_id"})

COMPLETENESS_SECTIONS: tuple[str, ...] = (
    "personal",
    "education",
    "currentWork",
    "previousWork",
    "training",
    "languages",
)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _drop_ids(item: Any) -> Any:
    if isinstance(item, Mapping):
        return {k: v for k, v in item.items() if k not in INTERNAL_ID_KEYS}
    return item


def strip_internal_ids(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Remove client-supplied internal ids from a section payload.

    Top-level keys and keys inside section objects and section list items are
    stripped. List sections that are missing default to an empty list; a
    single object given for a list section is wrapped in a list.
    """
    cleaned = {k: v for k, v in payload.items() if k not in INTERNAL_ID_KEYS}

    for field in SECTION_FIELDS:
        if field not in cleaned:
            continue
        value = cleaned[field]
        if field in LIST_SECTIONS:
            if value is None:
                value = []
            elif not isinstance(value, list):
                value = [value]
            cleaned[field] = [_drop_ids(item) for item in value if item is not None]
        else:
            cleaned[field] = _drop_ids(value)

    return cleaned


def merge_profile_into_draft(
    profile: Optional[Mapping[str, Any]],
    draft: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Fill empty draft sections from the profile. Existing draft values win.
    """
    merged = dict(draft)
    if not profile:
        return merged
    for field in SECTION_FIELDS:
        if is_empty(merged.get(field)) and not is_empty(profile.get(field)):
            value = profile[field]
            merged[field] = list(value) if isinstance(value, list) else value
    return merged


def sections_of(record: Any) -> dict[str, Any]:
    """Read the reusable sections off an ORM record or a mapping."""
    if isinstance(record, Mapping):
        return {field: record.get(field) for field in SECTION_FIELDS}
    return {field: getattr(record, field, None) for field in SECTION_FIELDS}


def profile_completeness(profile: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Per-section completeness flags and an overall integer percentage.

    Used to prompt users to finish their profile; it never blocks submission.
    """
    profile = profile or {}
    personal_info = profile.get("personal_info") or {}
    current = profile.get("current_experience") or {}

    flags = {
        "personal": all(
            not is_empty(personal_info.get(key))
            for key in ("firstName", "lastName", "email", "phone")
        ),
        "education": not is_empty(profile.get("education")),
        "currentWork": not is_empty(current.get("company")) and not is_empty(current.get("position")),
        "previousWork": not is_empty(profile.get("previous_experience")),
        "training": not is_empty(profile.get("training")),
        "languages": not is_empty(profile.get("languages")),
    }
    complete = sum(1 for name in COMPLETENESS_SECTIONS if flags[name])
    flags["overall"] = round(100 * complete / len(COMPLETENESS_SECTIONS))
    return flags
