"""
Read-only warranty projection shown on the public warranty page.

Views are built per request and never cached: the active/expired status is
always computed against the current instant.
"""
from datetime import datetime, timezone
from typing import Optional
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from warranty_api.models.business_profile import BusinessProfile
from warranty_api.models.sale import Sale
from warranty_api.schemas.warranty import DeviceView, WarrantyView

CPF_LENGTH = 11
SERIAL_VISIBLE_CHARS = 4
DEFAULT_CUSTOMER_NAME = "Cliente"
DEFAULT_DEVICE_MODEL = "Aparelho"

_NON_DIGITS = re.compile(r"\D")
_SERIAL_SEPARATORS = re.compile(r"[\s\-./]")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a stored timestamp to aware UTC. Naive values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def only_digits(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def mask_cpf(cpf_digits: str) -> str:
    if len(cpf_digits) != CPF_LENGTH:
        return "***.***.***-**"
    return f"***.***.***-{cpf_digits[-2:]}"


def mask_serial(serial: Optional[str]) -> str:
    """
    Hide all but the last 4 characters of a device serial/IMEI.

    Values of 4 characters or fewer are hidden entirely.
    """
    compact = _SERIAL_SEPARATORS.sub("", serial or "")
    if not compact:
        return "-"
    if len(compact) <= SERIAL_VISIBLE_CHARS:
        return "*" * SERIAL_VISIBLE_CHARS
    hidden = "*" * (len(compact) - SERIAL_VISIBLE_CHARS)
    return f"{hidden}{compact[-SERIAL_VISIBLE_CHARS:]}"


def warranty_status(expires_at: Optional[datetime], now: datetime) -> str:
    """
    'active' strictly before the expiry instant, 'expired' from it on.

    A sale recorded without a warranty end never lapses.
    """
    expires_at = as_utc(expires_at)
    if expires_at is None or now < expires_at:
        return "active"
    return "expired"


def certificate_id(sale_id: str) -> str:
    return f"#{sale_id[-6:].upper()}"


def build_warranty_view(sale: Sale, store_name: str, now: datetime) -> WarrantyView:
    items = [
        DeviceView(
            model=item.stock_item.model or DEFAULT_DEVICE_MODEL,
            capacity=item.stock_item.capacity or "",
            color=item.stock_item.color or "",
            condition=item.stock_item.condition or "",
            serial_masked=mask_serial(item.stock_item.imei),
        )
        for item in sale.items
        if item.stock_item is not None
    ]

    customer_name = sale.customer.name if sale.customer and sale.customer.name else DEFAULT_CUSTOMER_NAME

    return WarrantyView(
        certificate_id=certificate_id(sale.id),
        sale_date=as_utc(sale.date),
        warranty_expires_at=as_utc(sale.warranty_expires_at),
        status=warranty_status(sale.warranty_expires_at, now),
        customer_name=customer_name,
        store_name=store_name,
        items=items,
    )


def resolve_store_name(db: Session, fallback: str) -> str:
    """Display name from the business profile, or the configured fallback."""
    name = db.execute(select(BusinessProfile.name).limit(1)).scalar_one_or_none()
    return name or fallback
