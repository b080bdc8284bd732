"""Address geocoding through the Google Geocoding web service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

import requests

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
_TIMEOUT = 10


class GeocodingError(RuntimeError):
    """Raised when an address cannot be geocoded."""


@dataclass(frozen=True)
class GeocodingResult:
    """One match for a geocoded address."""

    formatted_address: str
    latitude: float
    longitude: float
    place_id: str = ""

    @classmethod
    def _from_json(cls, data: dict) -> "GeocodingResult":
        location = data.get("geometry", {}).get("location", {})
        return cls(
            formatted_address=data.get("formatted_address", ""),
            latitude=float(location.get("lat", 0.0)),
            longitude=float(location.get("lng", 0.0)),
            place_id=data.get("place_id", ""),
        )


def get_coordinates_by_address(
    address: str,
    api_key: Optional[str] = None,
    session: Optional[Any] = None,
) -> list[GeocodingResult]:
    """Geocode ``address``; the key defaults to GOOGLE_API_KEY."""
    if api_key is None:
        api_key = os.environ.get("GOOGLE_API_KEY", "")
    if not api_key:
        raise GeocodingError("maps: API Key missing")
    session = session if session is not None else requests.Session()
    try:
        response = session.get(
            GEOCODE_URL,
            params={"address": address, "key": api_key},
            timeout=_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise GeocodingError(f"maps: request failed: {exc}") from exc
    if response.status_code != 200:
        raise GeocodingError(f"maps: unexpected HTTP status {response.status_code}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise GeocodingError("maps: response is not JSON") from exc
    status = payload.get("status", "")
    if status == "ZERO_RESULTS":
        return []
    if status != "OK":
        detail = payload.get("error_message", "")
        raise GeocodingError(f"maps: {status} - {detail}".rstrip(" -"))
    return [GeocodingResult._from_json(item) for item in payload.get("results", [])]