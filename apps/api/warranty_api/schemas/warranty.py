"""
Warranty schemas for the public lookup and link issuance endpoints.

Field names go over the wire in camelCase.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from warranty_api.core.errors import BadRequest


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@dataclass(frozen=True)
class CpfLookup:
    """Lookup of every warranty held by a CPF."""
    cpf: str


@dataclass(frozen=True)
class TokenLookup:
    """Lookup of one sale's warranty through an opaque signed token."""
    token: str


WarrantyLookup = Union[CpfLookup, TokenLookup]


class VerifyRequest(CamelModel):
    """Body of the public lookup: a token or a CPF."""
    token: Optional[str] = None
    cpf: Optional[str] = None

    def resolve(self) -> WarrantyLookup:
        """
        Pick the lookup variant once, at the boundary.

        A CPF carrying digits wins over a token. A CPF with no digits is
        still a CPF lookup when there is no token, so it is rejected as an
        invalid CPF rather than as a missing field.
        """
        cpf = (self.cpf or "").strip()
        token = (self.token or "").strip()

        if any(ch.isdigit() for ch in cpf):
            return CpfLookup(cpf=cpf)
        if token:
            return TokenLookup(token=token)
        if cpf:
            return CpfLookup(cpf=cpf)
        raise BadRequest("request carried neither token nor cpf", public_message="token ou cpf é obrigatório.")


class DeviceView(CamelModel):
    model: str
    capacity: str
    color: str
    condition: str
    serial_masked: str


class WarrantyView(CamelModel):
    certificate_id: str
    sale_date: datetime
    warranty_expires_at: Optional[datetime]
    status: Literal["active", "expired"]
    customer_name: str
    store_name: str
    items: List[DeviceView]


class CpfLookupResult(CamelModel):
    mode: Literal["cpf"] = "cpf"
    customer_name: str
    cpf_masked: str
    warranties: List[WarrantyView]


class CpfLookupResponse(CamelModel):
    lookup: CpfLookupResult


class TokenLookupResponse(CamelModel):
    warranty: WarrantyView


class IssueLinkRequest(CamelModel):
    sale_id: Optional[str] = None
    mode: Optional[Literal["cpf", "token"]] = None


class IssueLinkResponse(CamelModel):
    public_url: str
    cpf: Optional[str] = None
    token_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class RevokeLinkResponse(CamelModel):
    token_id: str
    revoked_at: datetime
