"""
Public warranty lookup endpoint, used by the unauthenticated warranty page.
"""
from typing import Optional, Union

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from warranty_api.core.config import Settings, get_settings
from warranty_api.db.session import get_db
from warranty_api.schemas.warranty import (
    CpfLookup,
    CpfLookupResponse,
    TokenLookupResponse,
    VerifyRequest,
)
from warranty_api.services.rate_limit import CpfLookupRateLimiter, get_cpf_rate_limiter
from warranty_api.services.warranty_verifier import WarrantyVerifier

router = APIRouter(prefix="/warranty", tags=["warranty"])


def cpf_rate_limiter(settings: Settings = Depends(get_settings)) -> Optional[CpfLookupRateLimiter]:
    return get_cpf_rate_limiter(settings)


@router.post("/public", response_model=Union[CpfLookupResponse, TokenLookupResponse])
def verify_public_warranty(
    body: VerifyRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    limiter: Optional[CpfLookupRateLimiter] = Depends(cpf_rate_limiter),
):
    """
    Resolve a public warranty credential.

    Send `{"cpf": ...}` for every warranty of a customer or `{"token": ...}`
    for the single sale an issued link points to.
    """
    lookup = body.resolve()

    if isinstance(lookup, CpfLookup) and limiter is not None:
        limiter.hit(request.client.host if request.client else "unknown")

    return WarrantyVerifier(db, settings).verify(lookup)
