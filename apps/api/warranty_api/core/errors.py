"""
Error taxonomy for warranty link issuance and public verification.

Every failure carries the HTTP status it maps to, a stable machine code and
a message that is safe to show to a public caller. The detail passed to the
constructor is for server-side logs only.
"""
from fastapi import status

GENERIC_TOKEN_MESSAGE = "Não foi possível carregar esta garantia."


class WarrantyError(Exception):
    """Base class for errors converted to JSON responses at the HTTP boundary."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"
    public_message: str = "Requisição inválida."

    def __init__(self, detail: str | None = None, public_message: str | None = None):
        self.detail = detail or self.public_message
        if public_message is not None:
            self.public_message = public_message
        super().__init__(self.detail)


class TokenError(WarrantyError):
    """Any failure on the opaque token path. All share one public message."""

    public_message = GENERIC_TOKEN_MESSAGE


class MalformedToken(TokenError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "malformed_token"


class InvalidSignature(TokenError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_signature"


class TokenExpired(TokenError):
    status_code = status.HTTP_410_GONE
    code = "token_expired"


class TokenNotFound(TokenError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "token_not_found"


class TokenRevoked(TokenError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "token_revoked"


class InvalidToken(TokenError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_token"


class InvalidCpf(WarrantyError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_cpf"
    public_message = "CPF inválido."


class Unauthenticated(WarrantyError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    public_message = "Invalid auth token."


class Forbidden(WarrantyError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    public_message = "Acesso negado."


class BadRequest(WarrantyError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"


class NotFound(WarrantyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    public_message = "Não encontrado."


class UnprocessableEntity(WarrantyError):
    status_code = 422
    code = "unprocessable_entity"
    public_message = "Não foi possível processar a requisição."


class RateLimited(WarrantyError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"
    public_message = "Muitas consultas. Tente novamente em instantes."


class InfrastructureError(WarrantyError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_server_error"
    public_message = "An unexpected error occurred. Please try again later."
