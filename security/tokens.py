"""Issues and verifies the signed JWTs used for access and refresh.

Access and refresh tokens share one claim layout but are signed with distinct
secrets and carry distinct lifetimes, so a token of one class never verifies
as the other.
"""
import secrets

from datetime import datetime, timedelta

from jose import JWTError, jwt

from pydantic import BaseModel, ValidationError

from models.helpers import TokenType, utc_now

from utils.config import Settings


class TokenVerificationError(Exception):
    """Base class for token verification failures."""


class InvalidTokenSignature(TokenVerificationError):
    """Token is malformed, signed with another key, or missing required claims."""


class TokenExpired(TokenVerificationError):
    """Token is well signed but past its expiry."""


class TokenClaims(BaseModel):
    """Claims carried by every issued token."""

    subject: str
    issued_at: datetime
    expires_at: datetime
    token_id: str
    token_type: TokenType


def issue_token(
    subject: str,
    secret: str,
    ttl_seconds: int,
    token_type: TokenType,
    algorithm: str = "HS256",
    now: datetime | None = None,
) -> str:
    """Sign a token for `subject` valid for `ttl_seconds` from `now`.

    Args:
        subject (str): ID of the user the token is issued to.
        secret (str): Signing secret for this class of token.
        ttl_seconds (int): Validity window in seconds.
        token_type (TokenType): Class of the token, recorded in the `type` claim.
        algorithm (str, optional): JWS algorithm. Defaults to "HS256".
        now (datetime | None, optional): Issue time. Defaults to the current time.

    Returns:
        str: The encoded JWT.
    """
    issued_at = now or utc_now()
    expires_at = issued_at + timedelta(seconds=ttl_seconds)

    claims = {
        "sub": subject,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": secrets.token_urlsafe(16),  # Two tokens issued in the same second still differ
        "type": token_type.value,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def issue_access_token(user_id: str, settings: Settings, now: datetime | None = None) -> str:
    return issue_token(
        user_id,
        settings.access_token_secret,
        settings.access_token_ttl_seconds,
        TokenType.ACCESS,
        algorithm=settings.jwt_algorithm,
        now=now,
    )


def issue_refresh_token(user_id: str, settings: Settings, now: datetime | None = None) -> str:
    return issue_token(
        user_id,
        settings.refresh_token_secret,
        settings.refresh_token_ttl_seconds,
        TokenType.REFRESH,
        algorithm=settings.jwt_algorithm,
        now=now,
    )


def verify_token(
    token: str,
    secret: str,
    algorithm: str = "HS256",
    now: datetime | None = None,
) -> TokenClaims:
    """Verify the signature and expiry of `token`.

    Expiry is checked against `now` rather than by the JWT library so callers
    share one clock.

    Raises:
        InvalidTokenSignature: The token is malformed or the signature does not match.
        TokenExpired: The token expired at or before `now`.

    Returns:
        TokenClaims: The verified claims.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm], options={"verify_exp": False})
    except JWTError as e:
        raise InvalidTokenSignature(str(e)) from e

    try:
        claims = TokenClaims(
            subject=payload["sub"],
            issued_at=payload["iat"],
            expires_at=payload["exp"],
            token_id=payload["jti"],
            token_type=payload["type"],
        )
    except (KeyError, ValidationError) as e:
        raise InvalidTokenSignature("Token is missing required claims") from e

    if claims.expires_at <= (now or utc_now()):
        raise TokenExpired("Token has expired")

    return claims
