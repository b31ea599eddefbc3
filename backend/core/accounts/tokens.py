"""Signed, expiring access tokens.

Tokens are produced with Django's `TimestampSigner` keyed by `SECRET_KEY`, so
verification is a constant-time HMAC comparison plus an age check and needs no
token store.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.core import signing
from django.utils import timezone

from tenancy.exceptions import CredentialExpired, InvalidCredential

ACCESS_TOKEN_SALT = "accounts.tokens.access"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    tenant_id: int | None
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    expires_in: int


def _token_ttl() -> int:
    return int(settings.ACCESS_TOKEN_TTL_SECONDS)


def issue_access_token(user) -> IssuedToken:
    ttl = _token_ttl()
    token = signing.dumps(
        {"uid": user.pk, "tid": user.tenant_id},
        salt=ACCESS_TOKEN_SALT,
        compress=True,
    )
    return IssuedToken(
        token=token,
        expires_at=timezone.now() + timedelta(seconds=ttl),
        expires_in=ttl,
    )


def verify_access_token(token: str) -> TokenClaims:
    if not token:
        raise InvalidCredential()

    try:
        payload = signing.loads(token, salt=ACCESS_TOKEN_SALT, max_age=_token_ttl())
    except signing.SignatureExpired:
        raise CredentialExpired()
    except signing.BadSignature:
        raise InvalidCredential()

    if not isinstance(payload, dict) or "uid" not in payload:
        raise InvalidCredential()

    issued_at = _issued_at(token)
    return TokenClaims(
        user_id=payload["uid"],
        tenant_id=payload.get("tid"),
        issued_at=issued_at,
        expires_at=issued_at + timedelta(seconds=_token_ttl()),
    )


def _issued_at(token: str) -> datetime:
    timestamp = token.rsplit(":", 2)[-2]
    return datetime.fromtimestamp(signing.b62_decode(timestamp), tz=dt_timezone.utc)
