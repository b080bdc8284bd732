"""Request handlers for housing statuses."""

from __future__ import annotations

import logging

from .errors import bad_request, unprocessable_entity
from .housing_handlers import _DB_ERRORS, _decode_body, _error, _json, get_dependencies
from .models import MalformedBody, Status

logger = logging.getLogger(__name__)


def create_housing_status():
    """Insert a housing status and return it."""
    deps = get_dependencies()
    try:
        status = _decode_body(Status)
    except MalformedBody as exc:
        logger.warning("Status - Create - Body Error - %s", exc)
        return _error(unprocessable_entity("Malformed body"))

    try:
        status = deps.database.create_housing_status(status)
    except _DB_ERRORS as exc:
        logger.warning("Status - Create - DB Creation Error - %s", exc)
        return _error(bad_request("Housing status creation failed"))

    return _json(status.to_dict(), 201)


def get_all_housing_statuses():
    """List every housing status, oldest first."""
    deps = get_dependencies()
    try:
        statuses = deps.database.get_all_housing_statuses()
    except _DB_ERRORS as exc:
        logger.warning("Status - Get All - DB Retrieval Error - %s", exc)
        return _error(bad_request("An error occurred during housing statuses retrieval"))
    return _json([status.to_dict() for status in statuses])