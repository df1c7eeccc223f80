"""
Caller identity for the internal endpoints that issue and revoke links.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from warranty_api.core.config import Settings
from warranty_api.core.errors import InfrastructureError, Unauthenticated
from warranty_api.core.security import decode_access_token
from warranty_api.models.user_profile import UserProfile


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: Optional[str]


def resolve_caller(access_token: Optional[str], db: Session, settings: Settings) -> Caller:
    """
    Resolve a bearer token to the caller id and their profile role.

    A caller without a profile resolves with ``role=None``; deciding what
    that caller may do is up to the operation.
    """
    if not settings.JWT_SECRET_KEY:
        raise InfrastructureError("JWT_SECRET_KEY is not configured")
    if not access_token:
        raise Unauthenticated("missing bearer token")

    payload = decode_access_token(access_token, settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM)
    if payload is None:
        raise Unauthenticated("bearer token failed validation")

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise Unauthenticated("bearer token has no subject")

    try:
        role = db.execute(select(UserProfile.role).where(UserProfile.id == user_id)).scalar_one_or_none()
    except SQLAlchemyError as e:
        raise InfrastructureError(f"profile lookup failed for {user_id}: {e}") from e

    return Caller(user_id=user_id, role=role)
