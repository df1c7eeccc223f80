"""
Security utilities: public warranty token signing and caller JWT verification.

Public warranty tokens use the wire format ``<token_id>.<expires_at>.<signature>``
where ``signature`` is HMAC-SHA256 over ``<token_id>.<expires_at>``, encoded as
base64url without padding. Secrets are always passed in explicitly.
"""
from dataclasses import dataclass
from typing import Iterable
import base64
import hashlib
import hmac
import re

from jose import jwt, JWTError

from warranty_api.core.errors import MalformedToken

_EPOCH_PATTERN = re.compile(r"[0-9]+")
_MAX_EPOCH_DIGITS = 12
MAX_TOKEN_LENGTH = 512


@dataclass(frozen=True)
class DecodedToken:
    """The three fields of a serialized public warranty token."""
    token_id: str
    expires_at: int
    signature: str

    @property
    def payload(self) -> str:
        return f"{self.token_id}.{self.expires_at}"


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def sign(message: str, secret: str) -> str:
    """HMAC-SHA256 of ``message`` keyed by ``secret``, base64url without padding."""
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return _b64url(digest)


def verify_signature(message: str, signature: str, secret: str) -> bool:
    """
    Check ``signature`` against the expected signature for ``message``.

    Lengths are public, so a length mismatch is rejected up front; equal-length
    values are compared in constant time.
    """
    expected = sign(message, secret)
    if len(signature) != len(expected):
        return False
    return hmac.compare_digest(signature.encode("ascii", "replace"), expected.encode("ascii"))


def verify_signature_any(message: str, signature: str, secrets: Iterable[str]) -> bool:
    """Accept a signature made with any of ``secrets`` (current secret first)."""
    matched = False
    for secret in secrets:
        # No early exit: every configured secret is checked.
        matched = verify_signature(message, signature, secret) or matched
    return matched


def hash_token(token: str) -> str:
    """
    Hash a token for storage and lookup.

    Raw tokens are never persisted; revocation records are found by this digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def encode_token(token_id: str, expires_at: int, secret: str) -> str:
    """Build the serialized token ``<token_id>.<expires_at>.<signature>``."""
    if not token_id or "." in token_id:
        raise ValueError("token_id must be non-empty and must not contain '.'")
    if expires_at <= 0:
        raise ValueError("expires_at must be a positive epoch second")

    payload = f"{token_id}.{expires_at}"
    return f"{payload}.{sign(payload, secret)}"


def decode_token(raw: str) -> DecodedToken:
    """
    Split a serialized token into its fields.

    Raises:
        MalformedToken: unless there are exactly three non-empty parts and the
            middle one is a positive base-10 integer of at most
            twelve digits, or when the token is longer than MAX_TOKEN_LENGTH.
    """
    if len(raw) > MAX_TOKEN_LENGTH:
        raise MalformedToken(f"token is {len(raw)} characters long")

    parts = raw.split(".")
    if len(parts) != 3 or not all(parts):
        raise MalformedToken(f"expected 3 non-empty segments, got {len(parts)}")

    token_id, expires_raw, signature = parts
    if not _EPOCH_PATTERN.fullmatch(expires_raw):
        raise MalformedToken("expiry segment is not a base-10 integer")
    if len(expires_raw) > _MAX_EPOCH_DIGITS:
        raise MalformedToken(f"expiry segment has {len(expires_raw)} digits")

    expires_at = int(expires_raw)
    if expires_at <= 0:
        raise MalformedToken("expiry segment is not positive")

    return DecodedToken(token_id=token_id, expires_at=expires_at, signature=signature)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> dict | None:
    """Decode and validate a caller JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None
