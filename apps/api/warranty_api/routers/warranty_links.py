"""
Warranty link endpoints for store staff (admin and seller roles).
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warranty_api.core.config import Settings, get_settings
from warranty_api.core.deps import get_current_caller
from warranty_api.db.session import get_db
from warranty_api.schemas.warranty import IssueLinkRequest, IssueLinkResponse, RevokeLinkResponse
from warranty_api.services.identity import Caller
from warranty_api.services.warranty_links import WarrantyLinkIssuer
from warranty_api.services.warranty_view import as_utc

router = APIRouter(prefix="/warranty-links", tags=["warranty-links"])


@router.post("", response_model=IssueLinkResponse, response_model_exclude_none=True)
def create_warranty_link(
    body: IssueLinkRequest,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> IssueLinkResponse:
    """
    Issue a shareable public link proving a sale's warranty.
    """
    link = WarrantyLinkIssuer(db, settings).issue(caller, body.sale_id, body.mode)
    return IssueLinkResponse(
        public_url=link.public_url,
        cpf=link.cpf,
        token_id=link.token_id,
        expires_at=link.expires_at,
    )


@router.post("/{token_id}/revoke", response_model=RevokeLinkResponse)
def revoke_warranty_link(
    token_id: str,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RevokeLinkResponse:
    """
    Permanently revoke a token link. CPF links cannot be revoked.
    """
    record = WarrantyLinkIssuer(db, settings).revoke(caller, token_id)
    return RevokeLinkResponse(token_id=record.id, revoked_at=as_utc(record.revoked_at))
