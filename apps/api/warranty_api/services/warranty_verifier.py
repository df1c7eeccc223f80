"""
Public warranty verification.

Turns an untrusted credential (an opaque signed token or a CPF) into masked
warranty views, or raises the specific error from warranty_api.core.errors.
"""
from datetime import datetime
from typing import Callable
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from warranty_api.core.config import Settings
from warranty_api.core.errors import (
    InfrastructureError,
    InvalidCpf,
    InvalidSignature,
    InvalidToken,
    NotFound,
    TokenExpired,
    TokenNotFound,
    TokenRevoked,
)
from warranty_api.core.security import decode_token, hash_token, verify_signature_any
from warranty_api.models.customer import Customer
from warranty_api.models.sale import Sale, SaleItem
from warranty_api.models.warranty_public_token import WarrantyPublicToken
from warranty_api.schemas.warranty import (
    CpfLookup,
    CpfLookupResponse,
    CpfLookupResult,
    TokenLookup,
    TokenLookupResponse,
    WarrantyLookup,
)
from warranty_api.services.warranty_view import (
    CPF_LENGTH,
    DEFAULT_CUSTOMER_NAME,
    as_utc,
    build_warranty_view,
    mask_cpf,
    only_digits,
    resolve_store_name,
    utc_now,
)

logger = logging.getLogger(__name__)


def _cpf_digits_pattern(cpf: str) -> str:
    # Any stored value whose digits are exactly `cpf` matches; the result is re-checked in Python.
    return "%" + "%".join(cpf) + "%"


def _sale_query():
    return select(Sale).options(
        selectinload(Sale.customer),
        selectinload(Sale.items).selectinload(SaleItem.stock_item),
    )


class WarrantyVerifier:
    """
    Stateless verifier for the public warranty page.

    The only write it ever performs is the best-effort access stamp on a
    successfully verified token.
    """

    def __init__(self, db: Session, settings: Settings, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock

    def verify(self, lookup: WarrantyLookup) -> CpfLookupResponse | TokenLookupResponse:
        try:
            if isinstance(lookup, CpfLookup):
                return self.lookup_by_cpf(lookup.cpf)
            if isinstance(lookup, TokenLookup):
                return self.lookup_by_token(lookup.token)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InfrastructureError(f"warranty lookup failed: {e}") from e
        raise TypeError(f"unsupported lookup: {lookup!r}")

    def lookup_by_cpf(self, raw_cpf: str) -> CpfLookupResponse:
        """
        All warranties held by a CPF, newest sale first.

        An unknown CPF and a known CPF without sales produce the same shape
        and run the same queries, so the answer does not reveal which CPFs
        are registered.
        """
        cpf = only_digits(raw_cpf)
        if len(cpf) != CPF_LENGTH:
            raise InvalidCpf(f"cpf has {len(cpf)} digits")

        cpf_masked = mask_cpf(cpf)
        candidates = self.db.execute(
            select(Customer)
            .where(Customer.cpf.like(_cpf_digits_pattern(cpf)))
            .order_by(Customer.created_at, Customer.id)
        ).scalars().all()
        customers = [c for c in candidates if only_digits(c.cpf) == cpf]
        customer_ids = [c.id for c in customers]

        sales = self.db.execute(
            _sale_query()
            .where(Sale.customer_id.in_(customer_ids))
            .order_by(Sale.date.desc())
        ).scalars().all()

        store_name = resolve_store_name(self.db, self.settings.STORE_NAME_FALLBACK)
        now = self.clock()
        warranties = [build_warranty_view(sale, store_name, now) for sale in sales]

        logger.info(f"CPF warranty lookup for {cpf_masked}: {len(warranties)} warranties")

        return CpfLookupResponse(
            lookup=CpfLookupResult(
                customer_name=customers[0].name if customers and customers[0].name else DEFAULT_CUSTOMER_NAME,
                cpf_masked=cpf_masked,
                warranties=warranties,
            )
        )

    def lookup_by_token(self, raw_token: str) -> TokenLookupResponse:
        """
        The warranty of the single sale an opaque token grants access to.

        Checks run in a fixed order: structure, signature, signed expiry,
        record lookup by hash, record cross-check, revocation, persisted expiry.
        """
        secrets = self.settings.verification_secrets
        if not secrets:
            raise InfrastructureError("WARRANTY_TOKEN_SECRET is not configured")

        decoded = decode_token(raw_token)

        if not verify_signature_any(decoded.payload, decoded.signature, secrets):
            raise InvalidSignature(f"signature mismatch for token {decoded.token_id}")

        now = self.clock()
        if now.timestamp() >= decoded.expires_at:
            raise TokenExpired(f"token {decoded.token_id} expired at {decoded.expires_at}")

        record = self.db.execute(
            select(WarrantyPublicToken).where(WarrantyPublicToken.token_hash == hash_token(raw_token))
        ).scalar_one_or_none()
        if record is None:
            raise TokenNotFound(f"no record for token {decoded.token_id}")

        record_expires_at = as_utc(record.expires_at)
        if record.id != decoded.token_id:
            raise InvalidToken(f"record {record.id} does not belong to token {decoded.token_id}")
        if int(record_expires_at.timestamp()) != decoded.expires_at:
            raise InvalidToken(f"record expiry does not match signed expiry for token {decoded.token_id}")

        if record.revoked_at is not None:
            raise TokenRevoked(f"token {decoded.token_id} was revoked at {record.revoked_at}")

        if record_expires_at <= now:
            raise TokenExpired(f"record for token {decoded.token_id} expired at {record_expires_at}")

        sale = self.db.execute(_sale_query().where(Sale.id == record.sale_id)).scalar_one_or_none()
        if sale is None:
            raise NotFound(f"sale {record.sale_id} for token {decoded.token_id} not found",
                           public_message="Garantia não encontrada.")

        store_name = resolve_store_name(self.db, self.settings.STORE_NAME_FALLBACK)
        warranty = build_warranty_view(sale, store_name, now)

        self._touch(record, now)
        return TokenLookupResponse(warranty=warranty)

    def _touch(self, record: WarrantyPublicToken, now: datetime) -> None:
        """Stamp last_accessed_at. Failures are logged and never fail the lookup."""
        token_id = record.id
        try:
            record.last_accessed_at = now
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not record access for token {token_id}: {e}")

