"""Records stored by the API and the request bodies it accepts."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, NamedTuple, Optional

ZERO_UUID = uuid.UUID(int=0)
ZERO_TIME_TEXT = "0001-01-01T00:00:00Z"
_FLOAT32_MAX = 3.4028234663852886e38


class MalformedBody(ValueError):
    """Raised when a JSON body cannot be decoded into a record."""


class _Codec(NamedTuple):
    decode: Callable[[Any, str], Any]
    encode: Callable[[Any], Any]


def _decode_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise MalformedBody(f"field {name!r} must be a string")
    return value


def _decode_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise MalformedBody(f"field {name!r} must be a boolean")
    return value


def _decode_float64(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedBody(f"field {name!r} must be a number")
    try:
        return float(value)
    except OverflowError as exc:
        raise MalformedBody(f"field {name!r} is out of range") from exc


def _decode_float32(value: Any, name: str) -> float:
    result = _decode_float64(value, name)
    if abs(result) > _FLOAT32_MAX:
        raise MalformedBody(f"field {name!r} is out of range")
    return result


def _decode_uuid(value: Any, name: str) -> uuid.UUID:
    if not isinstance(value, str):
        raise MalformedBody(f"field {name!r} must be a UUID string")
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise MalformedBody(f"field {name!r} is not a valid UUID") from exc


def _decode_time(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise MalformedBody(f"field {name!r} must be a timestamp string")
    text = value
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedBody(f"field {name!r} is not a valid timestamp") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _encode_time(value: Optional[datetime]) -> str:
    if value is None:
        return ZERO_TIME_TEXT
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    seconds = int(offset.total_seconds())
    sign = "+" if seconds >= 0 else "-"
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _decode_str_list(value: Any, name: str) -> list:
    if not isinstance(value, list):
        raise MalformedBody(f"field {name!r} must be an array of strings")
    return ["" if item is None else _decode_str(item, name) for item in value]


_STR = _Codec(_decode_str, str)
_BOOL = _Codec(_decode_bool, bool)
_FLOAT32 = _Codec(_decode_float32, float)
_FLOAT64 = _Codec(_decode_float64, float)
_UUID = _Codec(_decode_uuid, str)
_TIME = _Codec(_decode_time, _encode_time)
_STR_LIST = _Codec(_decode_str_list, lambda value: None if value is None else list(value))


def _field(json_name: str, codec: _Codec, default: Any = None, *,
           omitempty: bool = False, default_factory: Any = None) -> Any:
    metadata = {"json": json_name, "codec": codec, "omitempty": omitempty}
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _decode_record(cls, data, strict: bool = False):
    """Build a record of type cls from a JSON object, following JSON tag rules."""
    if not isinstance(data, Mapping):
        raise MalformedBody("body must be a JSON object")
    specs = {f.metadata["json"]: f for f in fields(cls)}
    folded = {name.casefold(): f for name, f in specs.items()}
    values = {}
    for key, raw in data.items():
        spec = specs.get(key) or folded.get(str(key).casefold())
        if spec is None:
            if strict:
                raise MalformedBody(f"unknown field {key!r}")
            continue
        if raw is None:
            continue
        values[spec.name] = spec.metadata["codec"].decode(raw, key)
    return cls(**values)


def _encode_record(record) -> dict:
    """Turn a record into a JSON-ready dict, leaving out empty omitempty fields."""
    out = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if f.metadata["omitempty"] and not value:
            continue
        out[f.metadata["json"]] = f.metadata["codec"].encode(value)
    return out


# UUID fields are never treated as empty on output: a UUID always has sixteen bytes.


@dataclass
class Housing:
    """A housing row."""

    id: uuid.UUID = _field("id", _UUID, ZERO_UUID)
    title: str = _field("title", _STR, "")
    type_id: uuid.UUID = _field("type_id", _UUID, ZERO_UUID)
    surface_area: float = _field("surface_area", _FLOAT32, 0.0)
    rent_price: float = _field("rent_price", _FLOAT32, 0.0)
    rental_charges: float = _field("rental_charges", _FLOAT32, 0.0)
    description: str = _field("description", _STR, "")
    country: str = _field("country", _STR, "")
    state: str = _field("state", _STR, "")
    city: str = _field("city", _STR, "")
    street: str = _field("street", _STR, "")
    zip: str = _field("zip", _STR, "")
    pictures: Optional[list] = _field("pictures", _STR_LIST, None, omitempty=True)
    latitude: float = _field("latitude", _FLOAT64, 0.0)
    longitude: float = _field("longitude", _FLOAT64, 0.0)
    is_furnished: bool = _field("is_furnished", _BOOL, False)
    has_electricity: bool = _field("has_electricity", _BOOL, False)
    has_gas: bool = _field("has_gas", _BOOL, False)
    is_published: bool = _field("is_published", _BOOL, False)
    status_id: uuid.UUID = _field("status_id", _UUID, ZERO_UUID)
    owner_id: uuid.UUID = _field("owner_id", _UUID, ZERO_UUID)
    last_tenant_id: uuid.UUID = _field("last_tenant_id", _UUID, ZERO_UUID)
    stripe_product_id: str = _field("stripe_product_id", _STR, "", omitempty=True)
    stripe_price_id: str = _field("stripe_price_id", _STR, "", omitempty=True)
    created_at: Optional[datetime] = _field("created_at", _TIME, None)
    updated_at: Optional[datetime] = _field("updated_at", _TIME, None)

    @classmethod
    def from_dict(cls, data):
        """Decode a housing from a JSON object."""
        return _decode_record(cls, data)

    def to_dict(self) -> dict:
        """Encode the housing as a JSON-ready dict."""
        return _encode_record(self)


@dataclass
class HousingBody:
    """Body of a housing update; unknown fields are rejected."""

    type_id: uuid.UUID = _field("type_id", _UUID, ZERO_UUID)
    title: str = _field("title", _STR, "")
    surface_area: float = _field("surface_area", _FLOAT32, 0.0, omitempty=True)
    rent_price: float = _field("rent_price", _FLOAT32, 0.0, omitempty=True)
    rental_charges: float = _field("rental_charges", _FLOAT32, 0.0, omitempty=True)
    description: str = _field("description", _STR, "")
    country: str = _field("country", _STR, "", omitempty=True)
    state: str = _field("state", _STR, "", omitempty=True)
    city: str = _field("city", _STR, "", omitempty=True)
    street: str = _field("street", _STR, "", omitempty=True)
    zip: str = _field("zip", _STR, "", omitempty=True)
    pictures: Optional[list] = _field("pictures", _STR_LIST, None, omitempty=True)
    latitude: float = _field("latitude", _FLOAT64, 0.0, omitempty=True)
    longitude: float = _field("longitude", _FLOAT64, 0.0, omitempty=True)
    is_furnished: bool = _field("is_furnished", _BOOL, False, omitempty=True)
    has_electricity: bool = _field("has_electricity", _BOOL, False, omitempty=True)
    has_gas: bool = _field("has_gas", _BOOL, False, omitempty=True)
    is_published: bool = _field("is_published", _BOOL, False, omitempty=True)
    status_id: uuid.UUID = _field("status_id", _UUID, ZERO_UUID)
    owner_id: uuid.UUID = _field("owner_id", _UUID, ZERO_UUID)
    last_tenant_id: uuid.UUID = _field("last_tenant_id", _UUID, ZERO_UUID)
    stripe_product_id: str = _field("stripe_product_id", _STR, "", omitempty=True)
    stripe_price_id: str = _field("stripe_price_id", _STR, "", omitempty=True)

    @classmethod
    def from_dict(cls, data):
        """Decode an update body, rejecting unknown fields."""
        return _decode_record(cls, data, strict=True)

    def to_dict(self) -> dict:
        """Encode the body as a JSON-ready dict."""
        return _encode_record(self)


@dataclass
class UpdatePublicationStatus:
    """Body of a publication status change; unknown fields are rejected."""

    is_published: bool = _field("is_published", _BOOL, False)

    @classmethod
    def from_dict(cls, data):
        """Decode the body, rejecting unknown fields."""
        return _decode_record(cls, data, strict=True)


@dataclass
class HousingType:
    """A housing type row."""

    id: uuid.UUID = _field("id", _UUID, ZERO_UUID)
    name: str = _field("name", _STR, "")
    created_at: Optional[datetime] = _field("created_at", _TIME, None)
    updated_at: Optional[datetime] = _field("updated_at", _TIME, None)

    @classmethod
    def from_dict(cls, data):
        """Decode a housing type from a JSON object."""
        return _decode_record(cls, data)

    def to_dict(self) -> dict:
        """Encode the housing type as a JSON-ready dict."""
        return _encode_record(self)


@dataclass
class Status:
    """A housing status row."""

    id: uuid.UUID = _field("id", _UUID, ZERO_UUID)
    name: str = _field("name", _STR, "")
    created_at: Optional[datetime] = _field("created_at", _TIME, None)
    updated_at: Optional[datetime] = _field("updated_at", _TIME, None)

    @classmethod
    def from_dict(cls, data):
        """Decode a status from a JSON object."""
        return _decode_record(cls, data)

    def to_dict(self) -> dict:
        """Encode the status as a JSON-ready dict."""
        return _encode_record(self)


@dataclass
class UpdateStatusBody:
    """Body of a housing status change; unknown fields are rejected."""

    status_id: uuid.UUID = _field("status_id", _UUID, ZERO_UUID)

    @classmethod
    def from_dict(cls, data):
        """Decode the body, rejecting unknown fields."""
        return _decode_record(cls, data, strict=True)


@dataclass
class VisitOwner:
    """Owner contact details carried by a visit request."""

    first_name: str = _field("first_name", _STR, "")
    email: str = _field("email", _STR, "")

    @classmethod
    def from_dict(cls, data):
        """Decode owner details from a JSON object."""
        return _decode_record(cls, data)

    def to_dict(self) -> dict:
        """Encode the owner details as a JSON-ready dict."""
        return _encode_record(self)


def _decode_owner(value: Any, name: str) -> VisitOwner:
    if not isinstance(value, Mapping):
        raise MalformedBody(f"field {name!r} must be an object")
    return VisitOwner.from_dict(value)


_OWNER = _Codec(_decode_owner, lambda owner: owner.to_dict())


@dataclass
class CreateVisitBody:
    """Body of a visit booking request."""

    date: Optional[datetime] = _field("date", _TIME, None)
    hour: str = _field("hour", _STR, "")
    housing_id: uuid.UUID = _field("housing_id", _UUID, ZERO_UUID)
    owner: VisitOwner = _field("owner", _OWNER, default_factory=VisitOwner)

    @classmethod
    def from_dict(cls, data):
        """Decode a visit booking request from a JSON object."""
        return _decode_record(cls, data)


@dataclass
class AcceptVisit:
    """Body of a visit acceptance request."""

    user_email: str = _field("user_email", _STR, "")

    @classmethod
    def from_dict(cls, data):
        """Decode a visit acceptance request from a JSON object."""
        return _decode_record(cls, data)


@dataclass
class Visit:
    """A visit booking row."""

    id: uuid.UUID = _field("id", _UUID, ZERO_UUID)
    date: Optional[datetime] = _field("date", _TIME, None)
    hour: str = _field("hour", _STR, "")
    is_accepted: bool = _field("is_accepted", _BOOL, False, omitempty=True)
    housing_id: uuid.UUID = _field("housing_id", _UUID, ZERO_UUID)
    created_at: Optional[datetime] = _field("created_at", _TIME, None)
    updated_at: Optional[datetime] = _field("updated_at", _TIME, None)

    @classmethod
    def from_dict(cls, data):
        """Decode a visit from a JSON object."""
        return _decode_record(cls, data)

    def to_dict(self) -> dict:
        """Encode the visit as a JSON-ready dict."""
        return _encode_record(self)