"""Request handlers for housing types."""

from __future__ import annotations

import logging

from .errors import bad_request, not_found, unprocessable_entity
from .housing_handlers import (
    _DB_ERRORS,
    _decode_body,
    _error,
    _json,
    _parse_uuid,
    get_dependencies,
)
from .models import HousingType, MalformedBody

logger = logging.getLogger(__name__)


def create_housing_type():
    """Insert a housing type and return it."""
    deps = get_dependencies()
    try:
        housing_type = _decode_body(HousingType)
    except MalformedBody as exc:
        logger.warning("Housing Type - Create - Body Error - %s", exc)
        return _error(unprocessable_entity("Malformed body"))

    try:
        housing_type = deps.database.create_housing_type(housing_type)
    except _DB_ERRORS as exc:
        logger.warning("Housing Type - Create - Creation Error - %s", exc)
        return _error(bad_request("Housing type creation failed"))

    return _json(housing_type.to_dict(), 201)


def get_all_housing_types():
    """List every housing type, oldest first."""
    deps = get_dependencies()
    try:
        housing_types = deps.database.get_all_housing_types()
    except _DB_ERRORS as exc:
        logger.warning("Housing Type - Get All - DB Error - %s", exc)
        return _error(bad_request("An error occurred during housing types retrieval"))
    return _json([housing_type.to_dict() for housing_type in housing_types])


def get_all_housing_by_type(housing_type_id):
    """List the housings of one existing housing type."""
    deps = get_dependencies()
    type_uuid = _parse_uuid(housing_type_id)

    try:
        deps.database.get_housing_type_by_id(type_uuid)
    except _DB_ERRORS as exc:
        logger.warning("Housing Type - Get All By Type - ID not found - %s", exc)
        return _error(not_found("The given housing type ID doesn't exist"))

    try:
        housings = deps.database.get_housing_by_type(type_uuid)
    except _DB_ERRORS as exc:
        logger.warning("Housing Type - Get All By Type - DB Retrieval Error - %s", exc)
        return _error(bad_request("An error occurred during housing retrieval"))

    return _json([housing.to_dict() for housing in housings])