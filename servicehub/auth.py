"""
Caller identity from bearer tokens.

Tokens are JWTs minted by the identity provider; ``sub`` is the user id
every record's ownership fields refer to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Header

from servicehub.config import Settings, get_settings
from servicehub.errors import NotAuthenticated


@dataclass(frozen=True)
class Identity:
    subject: str
    token_identifier: str


def decode_token(token: str, settings: Settings) -> Identity:
    key = settings.jwt_public_key or settings.jwt_secret
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise NotAuthenticated("Could not validate credentials")

    subject = claims.get("sub")
    if not subject:
        raise NotAuthenticated("Invalid token")
    issuer = claims.get("iss")
    return Identity(
        subject=subject,
        token_identifier=f"{issuer}|{subject}" if issuer else subject,
    )


def get_optional_identity(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Optional[Identity]:
    """
    Resolve the caller, or None for anonymous requests. A token that is
    present but invalid is still an error.
    """
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        raise NotAuthenticated()
    return decode_token(authorization.split(" ", 1)[1], settings)


def require_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise NotAuthenticated()
    return identity
