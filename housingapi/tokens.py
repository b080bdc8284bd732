"""Verification of HMAC-signed JSON Web Tokens."""

from __future__ import annotations

import os
from typing import Optional

import jwt

_HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


class InvalidToken(ValueError):
    """Raised when a token is malformed, badly signed or expired."""


def validate_jwt_token(token_string: str, secret: Optional[str] = None) -> bool:
    """Check a token's HMAC signature and time claims; return True or raise InvalidToken.

    The secret defaults to JWT_TOKEN_SECRET.
    """
    if secret is None:
        secret = os.environ.get("JWT_TOKEN_SECRET", "")
    token_string = token_string.strip(" ")
    try:
        header = jwt.get_unverified_header(token_string)
    except jwt.PyJWTError as exc:
        raise InvalidToken(str(exc)) from exc
    algorithm = header.get("alg")
    if algorithm not in _HMAC_ALGORITHMS:
        raise InvalidToken(f"Unexpected signing method: {algorithm}")
    try:
        jwt.decode(
            token_string,
            secret,
            algorithms=[algorithm],
            options={"verify_aud": False, "verify_iss": False},
        )
    except jwt.PyJWTError as exc:
        raise InvalidToken(str(exc)) from exc
    return True