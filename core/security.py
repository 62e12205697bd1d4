"""
Security utilities: password hashing, session tokens and audit logging.

Credential verification is a boundary concern for this service; the helpers
here are the only place bcrypt and PyJWT are touched.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

import bcrypt
import jwt

logger = logging.getLogger("security.audit")

JWTPayload = Dict[str, Any]


class AuditAction(str, Enum):
    """Audit log action types."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Application lifecycle
    SUBMIT = "SUBMIT"
    WITHDRAW = "WITHDRAW"
    STATUS_CHANGE = "STATUS_CHANGE"

    # Vacancy ledger
    RESERVE_NUMBER = "RESERVE_NUMBER"

    # Files
    UPLOAD = "UPLOAD"

    # Identity
    LOGIN = "LOGIN"
    REGISTER = "REGISTER"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    APPLICATION = "APPLICATION"
    VACANCY = "VACANCY"
    VACANCY_NUMBER = "VACANCY_NUMBER"
    PROFILE = "PROFILE"
    USER = "USER"
    RESUME = "RESUME"


# PII fields that should be masked in logs
PII_FIELDS: Set[str] = {
    "email", "phone", "address", "city",
    "first_name", "last_name", "firstname", "lastname", "name",
    "current_salary", "currentsalary", "salary",
}


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    Args:
        data: Data to mask (dict, list, or primitive)
        depth: Current recursion depth (max 10)

    Returns:
        Data with PII fields masked
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if str(key).lower() in PII_FIELDS:
                if isinstance(value, str) and len(value) > 0:
                    # Partial masking: show first char and length indicator
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    elif isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]  # Limit list items
    else:
        return data


def mask_email(email: Optional[str]) -> str:
    """Mask an email address for log output (``j***@example.com``)."""
    if not email or "@" not in email:
        return "[MASKED]"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


async def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    contains_pii: bool = False,
) -> None:
    """
    Log an audit event for compliance tracking.

    This creates a structured log entry suitable for SIEM ingestion
    and compliance reporting.
    """
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id else None,
        "user_id": user_id,
        "contains_pii": contains_pii,
        "details": mask_pii(details) if details and contains_pii else details,
    }

    logger.info(json.dumps(event, default=str))


# ==================== Passwords ===================== #

def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash stored for the user
        return False


# ==================== Session tokens ===================== #

def create_access_token(
    claims: Dict[str, Any],
    secret: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed session token.

    Args:
        claims: Session claims (the shape is not trusted by consumers;
            see ``core.identity``)
        secret: Signing secret
        algorithm: JWT algorithm
        expires_delta: Token lifetime; defaults to one hour

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + (expires_delta or timedelta(hours=1))
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_jwt_token(token: str, secret: str, algorithm: str = "HS256") -> JWTPayload:
    """
    Verify a session token and return its claims.

    Raises:
        jwt.ExpiredSignatureError: Token has expired
        jwt.InvalidTokenError: Token is malformed or the signature is wrong
    """
    return jwt.decode(token, secret, algorithms=[algorithm])


def build_session_claims(user_id: str, email: str, name: str, role: str) -> Dict[str, Any]:
    """Claims issued at login; the id is duplicated under ``sub``."""
    return {
        "sub": user_id,
        "user": {
            "id": user_id,
            "sub": user_id,
            "email": email,
            "name": name,
            "role": role,
        },
    }
