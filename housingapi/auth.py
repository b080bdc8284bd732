"""Bearer token verification for incoming API requests."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from flask import Flask, request

from .errors import bad_request, unauthorized
from .housing_handlers import _error
from .tokens import InvalidToken, validate_jwt_token

UNPROTECTED_ROUTES = ("/swagger/",)
API_PREFIX = "/api/v1"

_PARAM = re.compile(r"\{(.*?)\}")


def is_unprotected(
    path: str,
    view_args: Optional[Mapping[str, Any]] = None,
    routes: Iterable[str] = UNPROTECTED_ROUTES,
) -> bool:
    """Tell whether ``path`` falls under one of the routes open without a token.

    ``{name}`` placeholders in a route are replaced by the matching view
    argument, or by nothing when the request has none of that name.
    """
    view_args = view_args or {}
    trimmed = path.removeprefix(API_PREFIX)
    for route in routes:
        resolved = _PARAM.sub(lambda match: str(view_args.get(match.group(1), "")), route)
        if resolved in trimmed:
            return True
    return False


def _request_uri() -> str:
    uri = request.path
    if request.query_string:
        uri += "?" + request.query_string.decode("latin-1")
    return uri


def install_jwt_verification(app: Flask, secret: Optional[str] = None) -> None:
    """Require a valid bearer token on every routed request of ``app``.

    Requests that match no route are left to the router. The secret defaults
    to JWT_TOKEN_SECRET.
    """

    def verify_jwt_token():
        if request.routing_exception is not None:
            return None
        if is_unprotected(_request_uri(), request.view_args, UNPROTECTED_ROUTES):
            return None
        parts = request.headers.get("Authorization", "").split("Bearer")
        if len(parts) != 2:
            return _error(bad_request("Malformed Authorization HTTP header"))
        try:
            validate_jwt_token(parts[1], secret)
        except InvalidToken as exc:
            return _error(unauthorized(f"Invalid jwt token: {exc}"))
        return None

    app.before_request(verify_jwt_token)