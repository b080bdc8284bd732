"""Request handlers for housing records and their pictures."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from flask import abort, current_app, request
from sqlalchemy.exc import SQLAlchemyError

from .errors import ErrorResponse, bad_request, not_found, unprocessable_entity
from .geocoding import GeocodingError, get_coordinates_by_address
from .models import (
    Housing,
    HousingBody,
    MalformedBody,
    UpdatePublicationStatus,
    UpdateStatusBody,
)
from .storage import StorageError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "housingapi"
MAX_PICTURES = 5

_DB_ERRORS = (SQLAlchemyError, LookupError, ValueError)

_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


@dataclass
class Dependencies:
    """Services the handlers work with."""

    database: Any
    storage: Any
    mailer: Any = None
    geocode: Callable[[str], list] = get_coordinates_by_address


def get_dependencies() -> Dependencies:
    """Return the services attached to the running application."""
    deps: Optional[Dependencies] = current_app.extensions.get(EXTENSION_KEY)
    if deps is None:
        raise RuntimeError("the application has no housing API dependencies configured")
    return deps


def picture_key(housing_id: Any, index: int) -> str:
    """Object name of a housing's picture number ``index`` (counted from 1)."""
    return f"{housing_id}/housing_picture_{housing_id}_{index}.png"


# -- helpers -----------------------------------------------------------


def _json(payload: Any, status: int = 200):
    text = json.dumps(payload, ensure_ascii=False) + "\n"
    return current_app.response_class(text, status=status, mimetype="application/json")


def _error(error: ErrorResponse):
    return _json(error.to_dict(), error.status_code)


def _no_content():
    return current_app.response_class(status=204)


def _decode_body(cls):
    try:
        data = json.loads(request.get_data(as_text=True))
    except ValueError as exc:
        raise MalformedBody(str(exc)) from exc
    return cls.from_dict(data)


def _address(record: Any) -> str:
    return f"{record.street}, {record.city} {record.zip} {record.country}"


def _geocode(deps: Dependencies, address: str) -> list:
    try:
        return deps.geocode(address)
    except GeocodingError as exc:
        logger.info("Geocoding of %r failed: %s", address, exc)
        return []


def _detect_content_type(data: bytes) -> str:
    head = data[:512]
    for signature, content_type in _SIGNATURES:
        if head.startswith(signature):
            return content_type
    if head[:4] == b"RIFF" and head[8:14] == b"WEBPVP":
        return "image/webp"
    if any(byte in _BINARY_BYTES for byte in head):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def _attach_pictures(deps: Dependencies, housing: Housing, count: int = MAX_PICTURES) -> Housing:
    for index in range(1, count + 1):
        try:
            picture = deps.storage.get_from_bucket(picture_key(housing.id, index))
        except StorageError:
            continue
        if housing.pictures is None:
            housing.pictures = []
        housing.pictures.append(picture)
    return housing


def _parse_uuid(value: str) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


# -- handlers ----------------------------------------------------------


def create_housing():
    """Insert a housing, geocode its address and store its pictures."""
    deps = get_dependencies()
    try:
        housing = _decode_body(Housing)
    except MalformedBody as exc:
        logger.warning("Housing - Create - Body Error - %s", exc)
        return _error(unprocessable_entity("Body malformed data"))

    coordinates = _geocode(deps, _address(housing))
    if coordinates:
        housing.latitude = coordinates[0].latitude
        housing.longitude = coordinates[0].longitude

    try:
        housing = deps.database.create_housing(housing)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Create - Creation Error - %s", exc)
        return _error(bad_request("Housing creation failed"))

    for index, picture in enumerate(housing.pictures or [], start=1):
        try:
            decoded = base64.b64decode(picture, validate=True)
        except (binascii.Error, ValueError) as exc:
            logger.warning("Housing - Create - Picture Decoding Error - %s", exc)
            return _error(bad_request("An error occurred during profile picture decoding"))
        try:
            deps.storage.add_to_bucket(
                picture_key(housing.id, index), decoded, _detect_content_type(decoded)
            )
        except StorageError as exc:
            logger.warning("Housing - Create - Picture Upload Error - %s", exc)

    return _json(housing.to_dict(), 201)


def get_all_housing():
    """List every housing with its stored pictures."""
    deps = get_dependencies()
    try:
        housings = deps.database.get_all_housing()
    except _DB_ERRORS as exc:
        logger.warning("Housing - Get All - DB Retrieval Error - %s", exc)
        return _error(bad_request("An error occurred during housing retrieval"))
    return _json([_attach_pictures(deps, housing).to_dict() for housing in housings])


def delete_housing_by_id(housing_id):
    """Delete a housing."""
    deps = get_dependencies()
    try:
        deps.database.delete_housing_by_id(_parse_uuid(housing_id))
    except _DB_ERRORS as exc:
        logger.warning("Housing - Delete - DB Error - %s", exc)
        return _error(bad_request("An error occurred during housing deletion"))
    return _no_content()


def update_housing_by_id(housing_id):
    """Apply the non-empty fields of the body to a housing."""
    deps = get_dependencies()
    try:
        updated = _decode_body(HousingBody)
    except MalformedBody as exc:
        logger.warning("Housing - Update - Body Error - %s", exc)
        return _error(unprocessable_entity("Body malformed data"))

    try:
        housing = deps.database.get_housing_by_id(_parse_uuid(housing_id))
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update - DB retrieval Error - %s", exc)
        return _error(not_found("The given housing ID doesn't exist"))

    if (housing.street, housing.city, housing.zip, housing.country) != (
        updated.street, updated.city, updated.zip, updated.country
    ):
        coordinates = _geocode(deps, _address(updated))
        if coordinates:
            updated.latitude = coordinates[0].latitude
            updated.longitude = coordinates[0].longitude

    try:
        deps.database.update_housing_by_id(housing, updated)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update - DB Update Error - %s", exc)
        return _error(bad_request("An error occurred during housing update"))

    return _json(housing.to_dict())


def update_housing_status(housing_id):
    """Change the status of a housing."""
    deps = get_dependencies()
    housing_uuid = _parse_uuid(housing_id)
    try:
        body = _decode_body(UpdateStatusBody)
    except MalformedBody as exc:
        logger.warning("Housing - Update Status - Body Error - %s", exc)
        return _error(unprocessable_entity("Body malformed data"))

    try:
        deps.database.get_housing_by_id(housing_uuid)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update Status - Housing ID Error - %s", exc)
        return _error(not_found("The given housing ID doesn't exist"))

    try:
        deps.database.get_status_by_id(body.status_id)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update Status - Status ID Error - %s", exc)
        return _error(not_found("The given status ID doesn't exist"))

    try:
        deps.database.update_housing_status(housing_uuid, body.status_id)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update Status - DB Update Error - %s", exc)
        return _error(bad_request("An error occurred during housing status update"))

    return _no_content()


def get_housing_by_id(housing_id):
    """Return one housing with its stored pictures."""
    deps = get_dependencies()
    try:
        housing = deps.database.get_housing_by_id(_parse_uuid(housing_id))
    except _DB_ERRORS as exc:
        logger.warning("Housing - Get By ID - DB Retrieval Error - %s", exc)
        return _error(bad_request("An error occurred during housing retrieval"))
    return _json(_attach_pictures(deps, housing).to_dict())


def get_housing_by_owner_id(owner_id):
    """List the housings of one owner with their stored pictures."""
    deps = get_dependencies()
    try:
        housings = deps.database.get_housing_by_owner_id(_parse_uuid(owner_id))
    except _DB_ERRORS as exc:
        logger.warning("Housing - Get By Owner ID - DB Retrieval Error - %s", exc)
        return _error(bad_request("An error occurred during housings list retrieval"))
    return _json([_attach_pictures(deps, housing).to_dict() for housing in housings])


def update_housing_publication_status(housing_id):
    """Publish or unpublish a housing."""
    deps = get_dependencies()
    housing_uuid = _parse_uuid(housing_id)
    try:
        body = _decode_body(UpdatePublicationStatus)
    except MalformedBody as exc:
        logger.warning("Housing - Update Publication Status - Body Error - %s", exc)
        return _error(unprocessable_entity("Body malformed data"))

    try:
        deps.database.get_housing_by_id(housing_uuid)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update Publication Status - DB ID Retrieval Error - %s", exc)
        return _error(not_found("The given housing ID doesn't exist"))

    try:
        deps.database.update_housing_publication_status(housing_uuid, body.is_published)
    except _DB_ERRORS as exc:
        logger.warning("Housing - Update Publication Status - Status Update Error - %s", exc)
        return _error(bad_request("An error occurred during housing status update"))

    return _no_content()


def get_filtered_housings():
    """List housings by city, type and status, with optional price and size bounds."""
    deps = get_dependencies()
    args = request.args
    if any(name not in args for name in ("city", "type_id", "status")):
        abort(404)
    housing_type = _parse_uuid(args["type_id"])
    status_id = _parse_uuid(args["status"])
    city = args["city"]
    max_price = args.get("max_price", "")
    min_size = args.get("min_size", "")

    try:
        housings = deps.database.get_filtered_housing(
            housing_type, city, max_price, min_size, status_id
        )
    except _DB_ERRORS as exc:
        logger.warning("Housing - Get Filtered - DB Retrieval Error - %s", exc)
        return _error(bad_request("An error occurred during housing retrieval"))

    return _json([_attach_pictures(deps, housing, 1).to_dict() for housing in housings])