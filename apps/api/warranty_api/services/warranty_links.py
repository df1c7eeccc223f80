"""
Public warranty link issuance and revocation.

Two kinds of link exist:

- ``cpf``: ``<APP_PUBLIC_URL>/#/warranties/<cpf>``. Durable, cannot expire or
  be revoked, and shows every warranty of the customer. This is what the
  store has always handed out and stays the default.
- ``token``: ``<APP_PUBLIC_URL>/#/warranty/<token>``. An opaque signed token
  for one sale that expires after WARRANTY_TOKEN_TTL_DAYS and can be revoked.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from warranty_api.core.config import Settings
from warranty_api.core.errors import (
    BadRequest,
    Forbidden,
    InfrastructureError,
    NotFound,
    UnprocessableEntity,
)
from warranty_api.core.security import encode_token, hash_token
from warranty_api.models.sale import Sale
from warranty_api.models.warranty_public_token import WarrantyPublicToken
from warranty_api.services.identity import Caller
from warranty_api.services.warranty_view import CPF_LENGTH, mask_cpf, only_digits, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedLink:
    public_url: str
    cpf: Optional[str] = None
    token_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class WarrantyLinkIssuer:
    """Issues and revokes public warranty links on behalf of store staff."""

    def __init__(self, db: Session, settings: Settings, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock

    def _authorize(self, caller: Caller) -> None:
        if caller.role not in self.settings.ISSUER_ROLES:
            raise Forbidden(f"user {caller.user_id} with role {caller.role!r} may not manage warranty links")

    def issue(self, caller: Caller, sale_id: Optional[str], mode: Optional[str] = None) -> IssuedLink:
        """
        Issue a public link for a sale.

        Args:
            caller: Authenticated staff member
            sale_id: Sale the link proves the warranty of
            mode: "cpf" or "token"; defaults to WARRANTY_LINK_MODE

        Raises:
            Forbidden, BadRequest, NotFound, UnprocessableEntity,
            InfrastructureError
        """
        self._authorize(caller)

        sale_id = (sale_id or "").strip()
        if not sale_id:
            raise BadRequest("saleId missing", public_message="saleId é obrigatório.")

        try:
            sale = self.db.execute(
                select(Sale).options(selectinload(Sale.customer)).where(Sale.id == sale_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise InfrastructureError(f"sale lookup failed for {sale_id}: {e}") from e

        if sale is None:
            raise NotFound(f"sale {sale_id} not found", public_message="Venda não encontrada.")

        cpf = only_digits(sale.customer.cpf if sale.customer else None)
        if not cpf:
            raise UnprocessableEntity(
                f"sale {sale_id} customer has no CPF",
                public_message="Cliente da venda sem CPF cadastrado.",
            )
        if len(cpf) != CPF_LENGTH:
            raise UnprocessableEntity(
                f"sale {sale_id} customer CPF has {len(cpf)} digits",
                public_message="Cliente da venda sem CPF válido (11 dígitos).",
            )

        mode = mode or self.settings.WARRANTY_LINK_MODE
        if mode == "token":
            return self._issue_token_link(caller, sale)

        logger.warning(
            f"Issued durable CPF warranty link for sale {sale.id} ({mask_cpf(cpf)}) by {caller.user_id}; "
            f"CPF links cannot expire or be revoked"
        )
        return IssuedLink(public_url=f"{self.settings.public_base_url}/#/warranties/{cpf}", cpf=cpf)

    def _issue_token_link(self, caller: Caller, sale: Sale) -> IssuedLink:
        secret = self.settings.WARRANTY_TOKEN_SECRET
        if not secret:
            raise InfrastructureError("WARRANTY_TOKEN_SECRET is not configured")

        token_id = str(uuid.uuid4())
        expires_epoch = int((self.clock() + timedelta(days=self.settings.WARRANTY_TOKEN_TTL_DAYS)).timestamp())
        expires_at = datetime.fromtimestamp(expires_epoch, tz=timezone.utc)
        token = encode_token(token_id, expires_epoch, secret)

        # The link is only handed out once its record is durable.
        try:
            self.db.add(WarrantyPublicToken(
                id=token_id,
                sale_id=sale.id,
                token_hash=hash_token(token),
                expires_at=expires_at,
                created_by=caller.user_id,
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InfrastructureError(f"could not persist warranty token for sale {sale.id}: {e}") from e

        logger.info(f"Issued warranty token {token_id} for sale {sale.id} by {caller.user_id}, expires {expires_at.isoformat()}")
        return IssuedLink(
            public_url=f"{self.settings.public_base_url}/#/warranty/{token}",
            token_id=token_id,
            expires_at=expires_at,
        )

    def revoke(self, caller: Caller, token_id: str) -> WarrantyPublicToken:
        """
        Permanently revoke a token. Revoking twice keeps the first revocation time.
        """
        self._authorize(caller)

        try:
            record = self.db.get(WarrantyPublicToken, token_id)
            if record is None:
                raise NotFound(f"warranty token {token_id} not found", public_message="Token não encontrado.")

            if record.revoked_at is None:
                record.revoked_at = self.clock()
                self.db.commit()
                self.db.refresh(record)
                logger.info(f"Revoked warranty token {token_id} (sale {record.sale_id}) by {caller.user_id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InfrastructureError(f"could not revoke warranty token {token_id}: {e}") from e

        return record
