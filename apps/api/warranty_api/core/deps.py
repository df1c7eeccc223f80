"""
FastAPI dependencies shared by the routers.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from warranty_api.core.config import Settings, get_settings
from warranty_api.db.session import get_db
from warranty_api.services.identity import Caller, resolve_caller

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Caller:
    """Resolve the authenticated internal caller from the bearer token."""
    token = credentials.credentials.strip() if credentials else None
    return resolve_caller(token, db, settings)
